"""Read access to the per-autoclave, per-day PLC tables."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import MetaData, Table, create_engine, inspect, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import NoSuchTableError

from models.errors import IncompatibleDataError
from models.records import Reading
from models.registers import register_labels
from settings import get_settings

logger = logging.getLogger(__name__)

TIMESTAMP_COLUMN = "Timestamp"
TEMPERATURE_COLUMNS = (
    "Temputare_main",
    "Temputare_1",
    "Temputare_2",
    "Temputare_3",
    "Temputare_4",
)
MIN_TEMPERATURE_COLUMN = "Temputare_min"
RUN_TIMER_COLUMN = "Time_Minute_Run"
TARGET_DURATION_COLUMN = "Time_Main"

READING_COLUMNS = (
    TIMESTAMP_COLUMN,
    *TEMPERATURE_COLUMNS,
    MIN_TEMPERATURE_COLUMN,
    RUN_TIMER_COLUMN,
    TARGET_DURATION_COLUMN,
)

_DATE_SUFFIX_FORMAT = "%Y%m%d"


@dataclass(frozen=True)
class LatestRecord:
    """The newest row stored for one autoclave."""

    table_name: str
    timestamp: Optional[datetime]
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DayRows:
    """Raw register rows of one day table, oldest first."""

    table_name: str
    columns: Tuple[str, ...]
    rows: List[Dict[str, Any]] = field(default_factory=list)


def parse_timestamp(value: Any) -> datetime:
    """Accept driver datetimes as well as ISO-8601 strings."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported timestamp value {value!r}")
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc


def _as_number(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    return value


def _finite_float(value: Any, column: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Column {column} holds a non-finite value {value!r}")
    return number


def _first_temperature(row: Mapping[str, Any]) -> Optional[float]:
    """Prefer the first positive sensor value; fall back to the first stored one.

    ``None`` means no temperature column holds a value at all. Non-positive
    values are kept so detection can discard them as bad samples.
    """
    fallback: Optional[float] = None
    for column in TEMPERATURE_COLUMNS:
        value = row.get(column)
        if value is None:
            continue
        number = _finite_float(value, column)
        if number > 0:
            return number
        if fallback is None:
            fallback = number
    return fallback


def _optional_float(row: Mapping[str, Any], column: str) -> Optional[float]:
    value = row.get(column)
    return None if value is None else _finite_float(value, column)


def row_to_reading(row: Mapping[str, Any]) -> Reading:
    """Map a stored row (column name -> value) onto a Reading."""
    return Reading(
        timestamp=parse_timestamp(row[TIMESTAMP_COLUMN]),
        temperature=_first_temperature(row),
        min_required_temperature=_optional_float(row, MIN_TEMPERATURE_COLUMN),
        run_timer_minutes=_optional_float(row, RUN_TIMER_COLUMN),
        target_duration_minutes=_optional_float(row, TARGET_DURATION_COLUMN),
    )


class PLCReadingStore:
    """Query helper over tables named ``<prefix><plc>_<YYYYMMDD>``.

    Table and column names are reflected from the database rather than
    formatted into SQL text.
    """

    def __init__(self, engine: Engine, table_prefix: str = "PLC_Data_") -> None:
        self.engine = engine
        self.table_prefix = table_prefix

    def table_name(self, plc: str, day: date) -> str:
        return f"{self.table_prefix}{plc}_{day.strftime(_DATE_SUFFIX_FORMAT)}"

    def table_names(self, plc: str) -> List[str]:
        """Return the PLC's day tables, newest first."""
        prefix = f"{self.table_prefix}{plc}_"
        names = []
        for name in inspect(self.engine).get_table_names():
            if not name.startswith(prefix):
                continue
            suffix = name[len(prefix):]
            if len(suffix) == 8 and suffix.isdigit():
                names.append(name)
        return sorted(names, reverse=True)

    def available_dates(self, plc: str) -> List[date]:
        prefix_length = len(f"{self.table_prefix}{plc}_")
        dates = []
        for name in self.table_names(plc):
            try:
                dates.append(datetime.strptime(name[prefix_length:], _DATE_SUFFIX_FORMAT).date())
            except ValueError:
                logger.warning(
                    "Ignoring table with an invalid date suffix",
                    extra={"plc": plc, "table_name": name, "reason": "invalid_date"},
                )
        return dates

    def fetch_readings(self, plc: str, day: date) -> List[Reading]:
        """Return the day's readings ordered by timestamp; [] when no table exists."""
        name = self.table_name(plc, day)
        table = self._reflect(name)
        if table is None:
            logger.info(
                "No table for requested day",
                extra={"plc": plc, "date": day.isoformat(), "table_name": name},
            )
            return []
        if TIMESTAMP_COLUMN not in table.c:
            raise IncompatibleDataError([TIMESTAMP_COLUMN])

        columns = [table.c[column] for column in READING_COLUMNS if column in table.c]
        statement = select(*columns).order_by(table.c[TIMESTAMP_COLUMN].asc())
        with self.engine.connect() as connection:
            rows = connection.execute(statement).mappings().all()

        readings = []
        for row in rows:
            try:
                readings.append(row_to_reading(row))
            except (TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping unparseable row",
                    extra={"plc": plc, "table_name": name, "reason": str(exc)},
                )
        logger.debug(
            "Fetched readings",
            extra={"plc": plc, "table_name": name, "reading_count": len(readings)},
        )
        return readings

    def fetch_rows(
        self,
        plc: str,
        day: date,
        columns: Optional[Sequence[str]] = None,
        start_hour: int = 0,
        end_hour: int = 24,
    ) -> Optional[DayRows]:
        """Return raw register rows of one day, optionally limited to an hour window.

        Only catalogued registers present in the table are selected; unknown
        names in ``columns`` are ignored. The window is inclusive at both ends
        and ``end_hour=24`` means the last second of the day. Returns None when
        the day has no table.
        """
        if not 0 <= start_hour <= end_hour <= 24:
            raise ValueError(
                f"Invalid hour window {start_hour}-{end_hour}; expected 0 <= start <= end <= 24."
            )
        name = self.table_name(plc, day)
        table = self._reflect(name)
        if table is None:
            return None
        if TIMESTAMP_COLUMN not in table.c:
            raise IncompatibleDataError([TIMESTAMP_COLUMN])

        wanted = set(columns) if columns else None
        selected = tuple(
            label
            for label in register_labels()
            if label in table.c and (wanted is None or label in wanted)
        )
        timestamp = table.c[TIMESTAMP_COLUMN]
        statement = select(timestamp, *(table.c[label] for label in selected)).order_by(
            timestamp.asc()
        )
        if start_hour > 0 or end_hour < 24:
            window_end = time(23, 59, 59) if end_hour == 24 else time(end_hour)
            statement = statement.where(
                timestamp >= datetime.combine(day, time(start_hour)),
                timestamp <= datetime.combine(day, window_end),
            )
        with self.engine.connect() as connection:
            rows = connection.execute(statement).mappings().all()

        logger.debug(
            "Fetched raw rows",
            extra={"plc": plc, "table_name": name, "reading_count": len(rows)},
        )
        return DayRows(
            table_name=name,
            columns=(TIMESTAMP_COLUMN, *selected),
            rows=[
                {
                    column: parse_timestamp(value) if column == TIMESTAMP_COLUMN else _as_number(value)
                    for column, value in row.items()
                }
                for row in rows
            ],
        )

    def latest_record(self, plc: str) -> Optional[LatestRecord]:
        """Return the newest row of the newest table, or None when the PLC has no tables."""
        names = self.table_names(plc)
        if not names:
            return None
        name = names[0]
        table = self._reflect(name)
        if table is None:
            return None
        if TIMESTAMP_COLUMN not in table.c:
            raise IncompatibleDataError([TIMESTAMP_COLUMN])

        statement = select(table).order_by(table.c[TIMESTAMP_COLUMN].desc()).limit(1)
        with self.engine.connect() as connection:
            row = connection.execute(statement).mappings().first()

        if row is None:
            return LatestRecord(table_name=name, timestamp=None)
        values = {
            column: _as_number(value)
            for column, value in row.items()
            if column != TIMESTAMP_COLUMN
        }
        return LatestRecord(
            table_name=name,
            timestamp=parse_timestamp(row[TIMESTAMP_COLUMN]),
            values=values,
        )

    def _reflect(self, name: str) -> Optional[Table]:
        try:
            return Table(name, MetaData(), autoload_with=self.engine)
        except NoSuchTableError:
            return None


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def build_default_store(
    database_url: Optional[str] = None,
    table_prefix: Optional[str] = None,
) -> PLCReadingStore:
    settings = get_settings()
    url = settings.database_url if database_url is None else database_url
    prefix = settings.table_prefix if table_prefix is None else table_prefix
    _ensure_sqlite_directory(url)
    engine = create_engine(url, pool_pre_ping=True)
    return PLCReadingStore(engine=engine, table_prefix=prefix)
