"""Load autoclave-day readings from a CSV export of a PLC table."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from datastore.plc_store import TIMESTAMP_COLUMN, row_to_reading
from models.records import Reading

logger = logging.getLogger(__name__)


@dataclass
class CSVImport:
    readings: List[Reading] = field(default_factory=list)
    skipped_rows: List[int] = field(default_factory=list)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def load_csv_readings(handle: TextIO) -> CSVImport:
    """Parse rows using the store's column names; bad rows are skipped and logged.

    Raises ValueError when the header is missing or has no timestamp column.
    """
    reader = csv.DictReader(handle)
    if not reader.fieldnames:
        raise ValueError("CSV file is missing a header row.")

    normalized = {name.strip(): name for name in reader.fieldnames}
    if TIMESTAMP_COLUMN not in normalized:
        raise ValueError(f"CSV missing required column: {TIMESTAMP_COLUMN}")

    result = CSVImport()
    for row_number, row in enumerate(reader, start=2):
        values = {column: _clean(row.get(original)) for column, original in normalized.items()}
        try:
            result.readings.append(row_to_reading(values))
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Skipping row %s: %s",
                row_number,
                exc,
                extra={"reason": str(exc)},
            )
            result.skipped_rows.append(row_number)
    return result
