"""Sterilization process detection driven by the controller's run timer.

A run starts when the run timer turns positive after an idle reading (or at
the first usable reading of the day) and ends at the reading where the timer
drops back to zero; that closing reading still belongs to the run. A run that
is still active at the last reading of the day is reported with
``completed=False``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from operator import attrgetter
from typing import Iterable, List, Optional, Sequence

from models.errors import IncompatibleDataError
from models.records import Reading, SterilizationProcess
from models.units import DEFAULT_TEMPERATURE_SCALE, scale_raw
from settings import Settings

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "temperature",
    "min_required_temperature",
    "run_timer_minutes",
    "target_duration_minutes",
)


@dataclass(frozen=True)
class DetectionPolicy:
    """Tunable thresholds for run filtering and success classification."""

    target_reached_percent: float = 70.0
    above_min_temp_percent: float = 60.0
    min_duration_minutes: float = 5.0
    temperature_scale: float = DEFAULT_TEMPERATURE_SCALE

    @classmethod
    def from_settings(cls, settings: Settings) -> "DetectionPolicy":
        return cls(
            target_reached_percent=settings.target_reached_percent,
            above_min_temp_percent=settings.above_min_temp_percent,
            min_duration_minutes=settings.min_process_minutes,
            temperature_scale=settings.temperature_scale,
        )


@dataclass
class _RunGroup:
    readings: List[Reading] = field(default_factory=list)
    closed: bool = False


def round_percent(value: float) -> int:
    """Round half up, matching how the dashboard has always shown percentages."""
    return int(math.floor(value + 0.5))


def order_readings(readings: Iterable[Reading]) -> List[Reading]:
    """Sort by timestamp, keeping input order among duplicate timestamps."""
    ordered = sorted(readings, key=attrgetter("timestamp"))
    duplicates = sum(
        1 for previous, current in zip(ordered, ordered[1:])
        if previous.timestamp == current.timestamp
    )
    if duplicates:
        logger.warning(
            "Readings contain duplicate timestamps; keeping input order",
            extra={"reason": "duplicate_timestamp", "reading_count": duplicates},
        )
    return ordered


def ensure_required_fields(readings: Sequence[Reading]) -> None:
    """Raise IncompatibleDataError when a required field never appears."""
    if not readings:
        return
    missing = [
        name
        for name in REQUIRED_FIELDS
        if all(getattr(reading, name) is None for reading in readings)
    ]
    if missing:
        raise IncompatibleDataError(missing)


def _is_usable(reading: Reading) -> bool:
    return (
        reading.temperature is not None
        and reading.temperature > 0
        and reading.run_timer_minutes is not None
    )


def _split_runs(readings: Iterable[Reading]) -> List[_RunGroup]:
    groups: List[_RunGroup] = []
    current: Optional[_RunGroup] = None
    previous_timer: Optional[float] = None

    for reading in readings:
        timer = reading.run_timer_minutes
        assert timer is not None
        if timer > 0:
            if previous_timer is None or previous_timer <= 0:
                current = _RunGroup()
                groups.append(current)
            assert current is not None
            current.readings.append(reading)
        elif current is not None and previous_timer is not None and previous_timer > 0:
            current.readings.append(reading)
            current.closed = True
            current = None
        previous_timer = timer

    return groups


def _in_range(reading: Reading, scale: float) -> bool:
    if reading.min_required_temperature is None or reading.temperature is None:
        return False
    return scale_raw(reading.temperature, scale) >= scale_raw(
        reading.min_required_temperature, scale
    )


def _summarize(process_id: int, group: _RunGroup, policy: DetectionPolicy) -> SterilizationProcess:
    readings = group.readings
    scale = policy.temperature_scale
    start_time = readings[0].timestamp
    end_time = readings[-1].timestamp
    duration = (end_time - start_time).total_seconds() / 60.0

    temperatures = [scale_raw(reading.temperature, scale) for reading in readings]
    in_range_count = sum(1 for reading in readings if _in_range(reading, scale))
    in_range_fraction = in_range_count / len(readings)

    target = max(
        (r.target_duration_minutes for r in readings if r.target_duration_minutes is not None),
        default=0.0,
    )
    max_timer = max(reading.run_timer_minutes for reading in readings)

    percent_target = round_percent(max_timer / target * 100) if target > 0 else 0
    percent_above = round_percent(in_range_fraction * 100)
    success = (
        target > 0 and percent_target >= policy.target_reached_percent
    ) or percent_above >= policy.above_min_temp_percent

    return SterilizationProcess(
        id=process_id,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration,
        min_temperature=min(temperatures),
        max_temperature=max(temperatures),
        in_range_fraction=in_range_fraction,
        sterilization_duration_minutes=in_range_fraction * duration,
        target_duration_minutes=target,
        max_run_timer_minutes=max_timer,
        percent_target_reached=percent_target,
        percent_above_min_temp=percent_above,
        success=success,
        reading_count=len(readings),
        completed=group.closed,
    )


def detect_processes(
    readings: Iterable[Reading],
    policy: Optional[DetectionPolicy] = None,
) -> List[SterilizationProcess]:
    """Partition one autoclave-day of readings into sterilization processes.

    Returns an empty list when nothing ran. Raises IncompatibleDataError when
    a required field is absent from every reading.
    """
    policy = policy or DetectionPolicy()
    ordered = order_readings(readings)
    ensure_required_fields(ordered)

    groups = _split_runs(reading for reading in ordered if _is_usable(reading))
    kept = []
    for group in groups:
        if not group.readings:
            continue
        span = group.readings[-1].timestamp - group.readings[0].timestamp
        if span.total_seconds() / 60.0 < policy.min_duration_minutes:
            logger.debug(
                "Dropping short run",
                extra={"reason": "below_min_duration", "reading_count": len(group.readings)},
            )
            continue
        kept.append(group)

    return [_summarize(index, group, policy) for index, group in enumerate(kept, start=1)]
