from __future__ import annotations

import io
import logging

import pytest

from services.csv_import import load_csv_readings


def test_rows_map_onto_readings() -> None:
    handle = io.StringIO(
        "Timestamp, Temputare_main ,Temputare_1,Temputare_min,Time_Minute_Run,Time_Main\n"
        "2024-01-05T08:00:00,,1240,1210,0,30\n"
        "2024-01-05T08:01:00,1250,1240,1210,1,30\n"
    )

    imported = load_csv_readings(handle)

    assert imported.skipped_rows == []
    first, second = imported.readings
    assert first.temperature == 1240.0
    assert second.temperature == 1250.0
    assert second.run_timer_minutes == 1.0
    assert second.target_duration_minutes == 30.0


def test_bad_rows_are_skipped_and_logged(caplog) -> None:
    handle = io.StringIO(
        "Timestamp,Temputare_main,Time_Minute_Run\n"
        "2024-01-05T08:00:00,1250,1\n"
        "not-a-time,1250,2\n"
        "2024-01-05T08:02:00,hot,3\n"
    )

    with caplog.at_level(logging.WARNING, logger="services.csv_import"):
        imported = load_csv_readings(handle)

    assert len(imported.readings) == 1
    assert imported.skipped_rows == [3, 4]
    assert any("Skipping row 3" in record.getMessage() for record in caplog.records)


def test_header_must_include_timestamp() -> None:
    with pytest.raises(ValueError, match="Timestamp"):
        load_csv_readings(io.StringIO("time,value\n1,2\n"))
    with pytest.raises(ValueError, match="header"):
        load_csv_readings(io.StringIO(""))


def test_non_finite_values_are_skipped() -> None:
    handle = io.StringIO(
        "Timestamp,Temputare_main,Temputare_min,Time_Minute_Run,Time_Main\n"
        "2024-01-05T08:00:00,1250,1210,1,30\n"
        "2024-01-05T08:01:00,1250,1210,inf,30\n"
        "2024-01-05T08:02:00,nan,1210,3,30\n"
    )

    imported = load_csv_readings(handle)

    assert [reading.run_timer_minutes for reading in imported.readings] == [1.0]
    assert imported.skipped_rows == [3, 4]
