"""Orchestration of store lookups and sterilization detection."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Sequence

from app.schemas import (
    AvailableDatesResponse,
    DayDataResponse,
    ConnectionQuality,
    DetectionMethod,
    LatestStatusResponse,
    PLCInfo,
    ProcessReport,
    ProcessSummary,
    RegisterInfo,
    RegisterValue,
    UnitState,
    UnitStatus,
)
from datastore.plc_store import LatestRecord, PLCReadingStore, build_default_store
from models.records import PLCConfig
from models.registers import REGISTERS, register_for
from services.segmenter import DetectionPolicy, detect_processes
from services.threshold_detector import ThresholdPolicy, detect_threshold_processes
from settings import get_settings

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data found for the specified date"
NO_PROCESS_MESSAGE = "No sterilization process detected for the specified date"

_EXCELLENT_SECONDS = 30

# Indicator lamp columns and the condition each one signals when set to 1.
_INDICATOR_COLUMNS = {
    "GREEN": "running",
    "RED": "temperature_alarm",
    "YELLOW": "timer_zero",
}


def build_plc_catalog(names: Sequence[str]) -> List[PLCConfig]:
    """Derive autoclave configs from PLC names such as ``PLC_01``."""
    catalog = []
    for index, name in enumerate(names, start=1):
        suffix = name.rsplit("_", 1)[-1]
        catalog.append(
            PLCConfig(name=name, display_name=f"Autoclave {suffix}", slave_address=index)
        )
    return catalog


def _register_value(column: str, value: object) -> RegisterValue:
    register = register_for(column)
    if register is None:
        return RegisterValue(value=value, label=column)
    return RegisterValue(
        value=value,
        code=register.code,
        label=register.label,
        description=register.description,
        unit=register.unit,
        indicator=register.indicator,
    )


class MonitorService:
    """Coordinates the reading store, detection, and per-unit status checks."""

    def __init__(
        self,
        store: PLCReadingStore,
        plcs: Sequence[PLCConfig],
        detection_policy: Optional[DetectionPolicy] = None,
        threshold_policy: Optional[ThresholdPolicy] = None,
        workers: int = 4,
        warning_seconds: float = 60.0,
        offline_seconds: float = 300.0,
        clock: Callable[..., datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.plcs = list(plcs)
        self.detection_policy = detection_policy or DetectionPolicy()
        self.threshold_policy = threshold_policy or ThresholdPolicy(
            temperature_scale=self.detection_policy.temperature_scale
        )
        self.warning_seconds = warning_seconds
        self.offline_seconds = offline_seconds
        self.clock = clock
        self.executor = ThreadPoolExecutor(max_workers=workers)

    def get_plc(self, name: str) -> PLCConfig:
        for plc in self.plcs:
            if plc.name == name:
                return plc
        raise KeyError(f"Autoclave {name!r} is not configured.")

    def detect(
        self,
        plc: str,
        day: date,
        method: DetectionMethod = DetectionMethod.timer,
    ) -> ProcessReport:
        """Detect the sterilization processes of one autoclave-day."""
        self.get_plc(plc)
        method = DetectionMethod(method)
        start_time = time.perf_counter()
        readings = self.store.fetch_readings(plc, day)
        if not readings:
            return ProcessReport(
                plc=plc,
                date=day,
                method=method,
                total_data_points=0,
                message=NO_DATA_MESSAGE,
            )

        if method is DetectionMethod.temperature:
            detected = detect_threshold_processes(readings, self.threshold_policy)
        else:
            detected = detect_processes(readings, self.detection_policy)
        processes = [ProcessSummary(**asdict(process)) for process in detected]

        logger.info(
            "Detected sterilization processes",
            extra={
                "plc": plc,
                "date": day.isoformat(),
                "method": method.value,
                "reading_count": len(readings),
                "process_count": len(processes),
                "processing_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return ProcessReport(
            plc=plc,
            date=day,
            method=method,
            total_data_points=len(readings),
            processes=processes,
            message=None if processes else NO_PROCESS_MESSAGE,
        )

    def available_dates(self, plc: str) -> AvailableDatesResponse:
        self.get_plc(plc)
        return AvailableDatesResponse(plc=plc, dates=self.store.available_dates(plc))

    def registers(self) -> List[RegisterInfo]:
        return [RegisterInfo(**asdict(register)) for register in REGISTERS]

    def fetch_data(
        self,
        plc: str,
        day: date,
        registers: Optional[Sequence[str]] = None,
        start_hour: int = 0,
        end_hour: int = 24,
    ) -> DayDataResponse:
        """Return raw rows of one autoclave-day for charting and export."""
        self.get_plc(plc)
        batch = self.store.fetch_rows(plc, day, registers, start_hour, end_hour)
        if batch is None:
            return DayDataResponse(
                plc=plc,
                date=day,
                table_name=self.store.table_name(plc, day),
                start_hour=start_hour,
                end_hour=end_hour,
                message=NO_DATA_MESSAGE,
            )
        return DayDataResponse(
            plc=plc,
            date=day,
            table_name=batch.table_name,
            start_hour=start_hour,
            end_hour=end_hour,
            columns=list(batch.columns),
            total_records=len(batch.rows),
            rows=batch.rows,
        )

    def latest_status(self) -> LatestStatusResponse:
        """Fetch every unit's newest row in parallel; failures stay per unit."""
        futures = [self.executor.submit(self._unit_status, plc) for plc in self.plcs]
        return LatestStatusResponse(
            generated_at=datetime.now(timezone.utc),
            units=[future.result() for future in futures],
        )

    def shutdown(self) -> None:
        """Release executor threads during application shutdown."""
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _unit_status(self, plc: PLCConfig) -> UnitStatus:
        info = PLCInfo(**asdict(plc))
        try:
            record = self.store.latest_record(plc.name)
        except Exception as exc:  # noqa: BLE001 - one unit must not fail the others
            logger.warning(
                "Latest status lookup failed",
                extra={"plc": plc.name, "status": UnitState.error.value, "reason": str(exc)},
            )
            return UnitStatus(
                plc=info,
                status=UnitState.error,
                message="Failed to fetch latest data",
                error=str(exc),
            )

        if record is None:
            return UnitStatus(plc=info, status=UnitState.no_data, message="No data found")
        if record.timestamp is None:
            return UnitStatus(
                plc=info,
                status=UnitState.empty_table,
                message="Latest table is empty",
                table_name=record.table_name,
            )
        return self._status_from_record(info, record)

    def _status_from_record(self, info: PLCInfo, record: LatestRecord) -> UnitStatus:
        assert record.timestamp is not None
        now = self.clock(record.timestamp.tzinfo)
        seconds_ago = int((now - record.timestamp).total_seconds())

        if seconds_ago > self.offline_seconds:
            state, message = UnitState.offline, "Disconnected - last data is stale"
        elif seconds_ago > self.warning_seconds:
            state, message = UnitState.warning, "Weak connection - delayed data"
        else:
            state, message = UnitState.success, "Connected - fresh data"

        if seconds_ago <= _EXCELLENT_SECONDS:
            quality = ConnectionQuality.excellent
        elif seconds_ago <= self.warning_seconds:
            quality = ConnectionQuality.good
        elif seconds_ago <= self.offline_seconds:
            quality = ConnectionQuality.poor
        else:
            quality = ConnectionQuality.offline

        indicators: Dict[str, bool] = {
            name: record.values.get(column) == 1
            for column, name in _INDICATOR_COLUMNS.items()
            if column in record.values
        }
        logger.debug(
            "Resolved unit status",
            extra={"plc": info.name, "status": state.value, "seconds_ago": seconds_ago},
        )
        return UnitStatus(
            plc=info,
            status=state,
            message=message,
            table_name=record.table_name,
            last_update=record.timestamp,
            seconds_ago=seconds_ago,
            is_online=seconds_ago <= self.warning_seconds,
            connection_quality=quality,
            values={
                column: _register_value(column, value) for column, value in record.values.items()
            },
            indicators=indicators,
        )


@lru_cache
def build_default_monitor(workers: Optional[int] = None) -> MonitorService:
    """Factory that wires the monitor with settings-driven defaults."""
    settings = get_settings()
    return MonitorService(
        store=build_default_store(),
        plcs=build_plc_catalog(settings.plc_names),
        detection_policy=DetectionPolicy.from_settings(settings),
        workers=workers or settings.status_workers,
        warning_seconds=settings.status_warning_seconds,
        offline_seconds=settings.status_offline_seconds,
    )
