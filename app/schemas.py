"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DetectionMethod(str, Enum):
    """Available sterilization detection algorithms."""

    timer = "timer"
    temperature = "temperature"


class UnitState(str, Enum):
    """Per-autoclave outcome of a latest-status lookup."""

    success = "success"
    warning = "warning"
    offline = "offline"
    no_data = "no_data"
    empty_table = "empty_table"
    error = "error"


class ConnectionQuality(str, Enum):
    excellent = "excellent"
    good = "good"
    poor = "poor"
    offline = "offline"


class PLCInfo(BaseModel):
    name: str
    display_name: str
    slave_address: int


class RegisterInfo(BaseModel):
    code: str
    label: str
    description: str
    unit: str = ""
    indicator: bool = False


class RegisterValue(BaseModel):
    """A stored column value together with its register metadata."""

    value: Any = None
    code: Optional[str] = None
    label: str
    description: Optional[str] = None
    unit: str = ""
    indicator: bool = False


class ProcessSummary(BaseModel):
    """One detected sterilization run.

    Timer-based runs fill the target and in-range fields; temperature-based
    runs fill ``high_temp_duration_minutes`` instead.
    """

    id: int = Field(..., ge=1)
    start_time: dt.datetime
    end_time: dt.datetime
    duration_minutes: float = Field(..., ge=0)
    min_temperature: float
    max_temperature: float
    sterilization_duration_minutes: float = Field(..., ge=0)
    success: bool
    in_range_fraction: Optional[float] = Field(default=None, ge=0, le=1)
    target_duration_minutes: Optional[float] = None
    max_run_timer_minutes: Optional[float] = None
    percent_target_reached: Optional[int] = Field(default=None, ge=0)
    percent_above_min_temp: Optional[int] = Field(default=None, ge=0, le=100)
    reading_count: Optional[int] = Field(default=None, ge=1)
    completed: Optional[bool] = Field(
        default=None, description="False when the run was still active at the last reading."
    )
    high_temp_duration_minutes: Optional[float] = None


class ProcessReport(BaseModel):
    """Detection result for one autoclave-day."""

    plc: str
    date: dt.date
    method: DetectionMethod
    total_data_points: int = Field(..., ge=0)
    processes: List[ProcessSummary] = Field(default_factory=list)
    message: Optional[str] = None


class UnitStatus(BaseModel):
    """Latest known state of one autoclave."""

    plc: PLCInfo
    status: UnitState
    message: str
    table_name: Optional[str] = None
    last_update: Optional[dt.datetime] = None
    seconds_ago: Optional[int] = None
    is_online: bool = False
    connection_quality: Optional[ConnectionQuality] = None
    values: Dict[str, RegisterValue] = Field(default_factory=dict)
    indicators: Dict[str, bool] = Field(default_factory=dict)
    error: Optional[str] = None


class LatestStatusResponse(BaseModel):
    generated_at: dt.datetime
    units: List[UnitStatus] = Field(default_factory=list)


class AvailableDatesResponse(BaseModel):
    plc: str
    dates: List[dt.date] = Field(default_factory=list)


class DayDataResponse(BaseModel):
    """Raw register rows of one autoclave-day."""

    plc: str
    date: dt.date
    table_name: str
    start_hour: int = Field(default=0, ge=0, le=24)
    end_hour: int = Field(default=24, ge=0, le=24)
    columns: List[str] = Field(default_factory=list)
    total_records: int = Field(default=0, ge=0)
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None
