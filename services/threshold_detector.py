"""Legacy sterilization detection from the main temperature channel alone.

Kept alongside the run-timer detector so both classifications can be compared
on the same day; the run-timer method remains the default.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from models.records import Reading, ThresholdProcess
from models.units import DEFAULT_TEMPERATURE_SCALE, scale_raw
from services.segmenter import order_readings


@dataclass(frozen=True)
class ThresholdPolicy:
    process_temperature: float = 60.0
    sterilization_temperature: float = 120.0
    high_temperature: float = 121.0
    high_hold_minutes: float = 20.0
    hold_minutes: float = 30.0
    temperature_scale: float = DEFAULT_TEMPERATURE_SCALE


@dataclass(frozen=True)
class _Sample:
    timestamp: datetime
    celsius: float


def _minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def _build_process(process_id: int, samples: List[_Sample], policy: ThresholdPolicy) -> ThresholdProcess:
    temperatures = [sample.celsius for sample in samples]
    above = [s.timestamp for s in samples if s.celsius >= policy.sterilization_temperature]
    sterilization_minutes = _minutes_between(above[0], above[-1]) if above else 0.0

    high_minutes = 0.0
    for current, following in zip(samples, samples[1:]):
        if current.celsius >= policy.high_temperature:
            high_minutes += _minutes_between(current.timestamp, following.timestamp)

    max_temperature = max(temperatures)
    success = (
        max_temperature >= policy.high_temperature and high_minutes >= policy.high_hold_minutes
    ) or (
        max_temperature >= policy.sterilization_temperature
        and sterilization_minutes >= policy.hold_minutes
    )
    return ThresholdProcess(
        id=process_id,
        start_time=samples[0].timestamp,
        end_time=samples[-1].timestamp,
        duration_minutes=_minutes_between(samples[0].timestamp, samples[-1].timestamp),
        min_temperature=min(temperatures),
        max_temperature=max_temperature,
        sterilization_duration_minutes=sterilization_minutes,
        high_temp_duration_minutes=high_minutes,
        success=success,
    )


def detect_threshold_processes(
    readings: Iterable[Reading],
    policy: Optional[ThresholdPolicy] = None,
) -> List[ThresholdProcess]:
    """Detect runs as excursions above the process temperature.

    A run opens at the last reading below ``process_temperature`` before a
    rise and closes at the last reading above it before a fall. Runs with no
    closing fall are not reported.
    """
    policy = policy or ThresholdPolicy()
    samples = [
        _Sample(reading.timestamp, scale_raw(reading.temperature, policy.temperature_scale))
        for reading in order_readings(readings)
        if reading.temperature is not None and reading.temperature > 0
    ]

    processes: List[ThresholdProcess] = []
    current: Optional[List[_Sample]] = None
    for sample, following in zip(samples, samples[1:]):
        if (
            current is None
            and sample.celsius < policy.process_temperature
            and following.celsius >= policy.process_temperature
        ):
            current = []
        if current is None:
            continue
        current.append(sample)
        if (
            sample.celsius >= policy.process_temperature
            and following.celsius < policy.process_temperature
        ):
            processes.append(_build_process(len(processes) + 1, current, policy))
            current = None

    return processes
