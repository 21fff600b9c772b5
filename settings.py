from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple


_DATABASE_URL_ENV = "DATABASE_URL"
_TABLE_PREFIX_ENV = "PLC_TABLE_PREFIX"
_PLC_NAMES_ENV = "PLC_NAMES"
_WORKER_COUNT_ENV = "STATUS_WORKER_COUNT"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_TARGET_PERCENT_ENV = "TARGET_REACHED_PERCENT"
_ABOVE_MIN_PERCENT_ENV = "ABOVE_MIN_TEMP_PERCENT"
_MIN_PROCESS_MINUTES_ENV = "MIN_PROCESS_MINUTES"
_TEMPERATURE_SCALE_ENV = "TEMPERATURE_SCALE"
_WARNING_SECONDS_ENV = "STATUS_WARNING_SECONDS"
_OFFLINE_SECONDS_ENV = "STATUS_OFFLINE_SECONDS"

DEFAULT_PLC_NAMES = ("PLC_01", "PLC_02", "PLC_03", "PLC_04", "PLC_05", "PLC_06")


@dataclass(frozen=True)
class Settings:
    database_url: str
    table_prefix: str
    plc_names: Tuple[str, ...]
    status_workers: int
    log_level: str
    target_reached_percent: float
    above_min_temp_percent: float
    min_process_minutes: float
    temperature_scale: float
    status_warning_seconds: float
    status_offline_seconds: float


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_list_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(part.strip() for part in value.split(",") if part.strip())
    return items or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float(name: str, default: float, allow_zero: bool = False) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if parsed > 0 or (allow_zero and parsed == 0):
        return parsed
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        database_url=_read_str_env(_DATABASE_URL_ENV, "sqlite:///./tmp/plc_monitoring.db"),
        table_prefix=_read_str_env(_TABLE_PREFIX_ENV, "PLC_Data_"),
        plc_names=_read_list_env(_PLC_NAMES_ENV, DEFAULT_PLC_NAMES),
        status_workers=_read_positive_int(_WORKER_COUNT_ENV, 4),
        log_level=_read_log_level("INFO"),
        target_reached_percent=_read_float(_TARGET_PERCENT_ENV, 70.0, allow_zero=True),
        above_min_temp_percent=_read_float(_ABOVE_MIN_PERCENT_ENV, 60.0, allow_zero=True),
        min_process_minutes=_read_float(_MIN_PROCESS_MINUTES_ENV, 5.0, allow_zero=True),
        temperature_scale=_read_float(_TEMPERATURE_SCALE_ENV, 10.0),
        status_warning_seconds=_read_float(_WARNING_SECONDS_ENV, 60.0),
        status_offline_seconds=_read_float(_OFFLINE_SECONDS_ENV, 300.0),
    )

