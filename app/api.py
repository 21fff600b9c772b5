"""HTTP route definitions for the service."""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from app.schemas import (
    AvailableDatesResponse,
    DayDataResponse,
    DetectionMethod,
    LatestStatusResponse,
    PLCInfo,
    ProcessReport,
    RegisterInfo,
)
from models.errors import IncompatibleDataError
from services.monitor import MonitorService, build_default_monitor

logger = logging.getLogger(__name__)

router = APIRouter()


def get_monitor() -> MonitorService:
    return build_default_monitor()


@router.get(
    "/plcs",
    response_model=List[PLCInfo],
    summary="List the configured autoclaves.",
)
async def list_plcs(monitor: MonitorService = Depends(get_monitor)) -> List[PLCInfo]:
    return [
        PLCInfo(name=plc.name, display_name=plc.display_name, slave_address=plc.slave_address)
        for plc in monitor.plcs
    ]


@router.get(
    "/plcs/{plc}/dates",
    response_model=AvailableDatesResponse,
    summary="List the dates with stored data for an autoclave, newest first.",
)
def get_available_dates(
    plc: str,
    monitor: MonitorService = Depends(get_monitor),
) -> AvailableDatesResponse:
    try:
        return monitor.available_dates(plc)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    except SQLAlchemyError as exc:
        logger.error("Listing available dates failed", extra={"plc": plc, "reason": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to query the reading store.",
        ) from exc


@router.get(
    "/sterilization-processes",
    response_model=ProcessReport,
    summary="Detect sterilization processes for one autoclave-day.",
)
def get_sterilization_processes(
    plc: str = Query(..., description="Autoclave name, e.g. PLC_01."),
    date: dt.date = Query(..., description="Calendar day in YYYY-MM-DD format."),
    method: DetectionMethod = Query(
        DetectionMethod.timer,
        description="Detection algorithm: run-timer transitions or temperature thresholds.",
    ),
    monitor: MonitorService = Depends(get_monitor),
) -> ProcessReport:
    try:
        return monitor.detect(plc, date, method)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    except IncompatibleDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except SQLAlchemyError as exc:
        logger.error(
            "Fetching readings failed",
            extra={"plc": plc, "date": date.isoformat(), "reason": str(exc)},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch temperature data.",
        ) from exc


@router.get(
    "/registers",
    response_model=List[RegisterInfo],
    summary="Catalog of logged PLC registers with labels and units.",
)
async def list_registers(monitor: MonitorService = Depends(get_monitor)) -> List[RegisterInfo]:
    return monitor.registers()


@router.get(
    "/data",
    response_model=DayDataResponse,
    summary="Raw register rows for one autoclave-day.",
)
def get_day_data(
    plc: str = Query(..., description="Autoclave name, e.g. PLC_01."),
    date: dt.date = Query(..., description="Calendar day in YYYY-MM-DD format."),
    start_hour: int = Query(0, ge=0, le=24, description="First hour of the window."),
    end_hour: int = Query(24, ge=0, le=24, description="Last hour of the window; 24 is end of day."),
    registers: Optional[str] = Query(
        None,
        description="Comma-separated register labels; all catalogued registers when omitted.",
    ),
    monitor: MonitorService = Depends(get_monitor),
) -> DayDataResponse:
    selected = [name.strip() for name in registers.split(",") if name.strip()] if registers else None
    try:
        return monitor.fetch_data(plc, date, selected, start_hour, end_hour)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except SQLAlchemyError as exc:
        logger.error(
            "Fetching raw rows failed",
            extra={"plc": plc, "date": date.isoformat(), "reason": str(exc)},
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch data.",
        ) from exc


@router.get(
    "/latest-status",
    response_model=LatestStatusResponse,
    summary="Latest reading and connection state for every autoclave.",
)
def get_latest_status(monitor: MonitorService = Depends(get_monitor)) -> LatestStatusResponse:
    return monitor.latest_status()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
