"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class PLCConfig:
    """A configured autoclave controller."""

    name: str
    display_name: str
    slave_address: int


@dataclass(frozen=True, slots=True)
class Reading:
    """One sampled row of an autoclave-day table.

    Temperatures are raw fixed-point register values; see ``models.units``.
    Every field but ``timestamp`` is ``None`` when the column is missing or NULL.
    """

    timestamp: datetime
    temperature: Optional[float] = None
    min_required_temperature: Optional[float] = None
    run_timer_minutes: Optional[float] = None
    target_duration_minutes: Optional[float] = None


@dataclass(frozen=True, slots=True)
class SterilizationProcess:
    """A sterilization run detected from run-timer transitions."""

    id: int
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    min_temperature: float
    max_temperature: float
    in_range_fraction: float
    sterilization_duration_minutes: float
    target_duration_minutes: float
    max_run_timer_minutes: float
    percent_target_reached: int
    percent_above_min_temp: int
    success: bool
    reading_count: int
    completed: bool


@dataclass(frozen=True, slots=True)
class ThresholdProcess:
    """A sterilization run detected by the temperature-threshold heuristic."""

    id: int
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    min_temperature: float
    max_temperature: float
    sterilization_duration_minutes: float
    high_temp_duration_minutes: float
    success: bool
