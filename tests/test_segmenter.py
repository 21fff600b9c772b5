"""Unit tests for run-timer based sterilization detection."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta

import pytest

from models.errors import IncompatibleDataError
from models.records import Reading
from models.units import scale_raw
from services.segmenter import DetectionPolicy, detect_processes, round_percent

BASE = datetime(2024, 1, 5, 8, 0)
HOT = 1250
COLD = 1000
MIN_REQUIRED = 1210


def _reading(
    minute: float,
    timer: float | None,
    temperature: float | None = HOT,
    target: float | None = 30,
    min_required: float | None = MIN_REQUIRED,
) -> Reading:
    return Reading(
        timestamp=BASE + timedelta(minutes=minute),
        temperature=temperature,
        min_required_temperature=min_required,
        run_timer_minutes=timer,
        target_duration_minutes=target,
    )


def _idle(minutes) -> list[Reading]:
    return [_reading(minute, 0, temperature=300) for minute in minutes]


def _scenario_a() -> list[Reading]:
    run = [_reading(minute, minute + 1) for minute in range(40)]
    return [*_idle([-2, -1]), *run, _reading(40, 0), *_idle([41, 42])]


def test_scenario_a_long_run_succeeds() -> None:
    processes = detect_processes(_scenario_a())

    assert len(processes) == 1
    process = processes[0]
    assert process.id == 1
    assert process.start_time == BASE
    assert process.end_time == BASE + timedelta(minutes=40)
    assert process.duration_minutes == 40
    assert process.max_run_timer_minutes == 40
    assert process.target_duration_minutes == 30
    assert process.percent_target_reached == 133
    assert process.percent_above_min_temp == 100
    assert process.in_range_fraction == 1.0
    assert process.sterilization_duration_minutes == 40
    assert process.min_temperature == 125.0
    assert process.max_temperature == 125.0
    assert process.completed is True
    assert process.success is True


def test_scenario_b_short_timer_and_cold_run_fails() -> None:
    run = [
        _reading(minute, min(minute + 1, 15), temperature=HOT if minute < 10 else COLD)
        for minute in range(49)
    ]
    readings = [*_idle([-1]), *run, _reading(49, 0, temperature=COLD), *_idle([50])]

    processes = detect_processes(readings)

    assert len(processes) == 1
    process = processes[0]
    assert process.reading_count == 50
    assert process.percent_target_reached == 50
    assert process.percent_above_min_temp == 20
    assert process.success is False


def test_scenario_c_short_blip_is_filtered() -> None:
    readings = [
        _reading(0, 0),
        _reading(1, 1),
        _reading(2, 2),
        _reading(3, 0),
        _reading(4, 0),
    ]

    assert detect_processes(readings) == []


def test_scenario_d_two_runs_get_independent_statistics() -> None:
    first = [_reading(minute, minute + 1, temperature=HOT) for minute in range(20)]
    second = [
        _reading(60 + minute, minute + 1, temperature=COLD, target=60) for minute in range(30)
    ]
    readings = [
        *first,
        _reading(20, 0),
        *_idle(range(21, 60)),
        *second,
        _reading(90, 0, temperature=COLD, target=60),
    ]

    processes = detect_processes(readings)

    assert [process.id for process in processes] == [1, 2]
    first_run, second_run = processes
    assert first_run.end_time < second_run.start_time
    assert first_run.duration_minutes == 20
    assert first_run.percent_target_reached == 67
    assert first_run.percent_above_min_temp == 100
    assert first_run.success is True
    assert second_run.duration_minutes == 30
    assert second_run.target_duration_minutes == 60
    assert second_run.percent_target_reached == 50
    assert second_run.percent_above_min_temp == 0
    assert second_run.success is False


def test_empty_input_returns_no_processes() -> None:
    assert detect_processes([]) == []


def test_no_positive_timer_returns_no_processes() -> None:
    readings = [_reading(minute, 0) for minute in range(30)]

    assert detect_processes(readings) == []


def test_missing_run_timer_everywhere_is_incompatible() -> None:
    readings = [_reading(minute, None) for minute in range(10)]

    with pytest.raises(IncompatibleDataError) as excinfo:
        detect_processes(readings)

    assert excinfo.value.missing_fields == ["run_timer_minutes"]
    assert "run_timer_minutes" in str(excinfo.value)


def test_missing_threshold_and_target_are_reported_together() -> None:
    readings = [
        _reading(minute, minute, min_required=None, target=None) for minute in range(10)
    ]

    with pytest.raises(IncompatibleDataError) as excinfo:
        detect_processes(readings)

    assert excinfo.value.missing_fields == [
        "min_required_temperature",
        "target_duration_minutes",
    ]


def test_zero_target_falls_back_to_temperature_condition() -> None:
    hot_run = [_reading(minute, minute + 1, target=0) for minute in range(10)]
    cold_run = [
        _reading(100 + minute, minute + 1, temperature=COLD, target=0) for minute in range(10)
    ]
    readings = [
        *hot_run,
        _reading(10, 0, target=0),
        *cold_run,
        _reading(110, 0, temperature=COLD, target=0),
    ]

    hot, cold = detect_processes(readings)

    assert hot.percent_target_reached == 0
    assert hot.success is True
    assert cold.percent_target_reached == 0
    assert cold.success is False


def test_run_active_at_end_of_day_is_partial() -> None:
    readings = [*_idle([0]), *[_reading(minute, minute) for minute in range(1, 12)]]

    processes = detect_processes(readings)

    assert len(processes) == 1
    assert processes[0].completed is False
    assert processes[0].end_time == readings[-1].timestamp
    assert processes[0].duration_minutes == 10


def test_non_positive_temperatures_are_ignored() -> None:
    run = [_reading(minute, minute + 1) for minute in range(10)]
    run[3] = _reading(3, 4, temperature=0)
    run[4] = _reading(4, 5, temperature=None)
    readings = [*run, _reading(10, 0)]

    (process,) = detect_processes(readings)

    assert process.reading_count == 9
    assert process.min_temperature == 125.0


def test_timer_positive_at_first_reading_starts_a_run() -> None:
    readings = [_reading(minute, minute + 5) for minute in range(8)] + [_reading(8, 0)]

    (process,) = detect_processes(readings)

    assert process.start_time == BASE
    assert process.max_run_timer_minutes == 12


def test_unordered_input_is_sorted_by_timestamp() -> None:
    readings = _scenario_a()
    shuffled = list(readings)
    random.Random(7).shuffle(shuffled)

    assert detect_processes(shuffled) == detect_processes(readings)


def test_duplicate_timestamps_keep_input_order(caplog) -> None:
    readings = [_reading(minute, minute + 1) for minute in range(10)]
    readings.insert(5, _reading(5, 0, temperature=COLD))

    with caplog.at_level(logging.WARNING, logger="services.segmenter"):
        processes = detect_processes(readings)

    assert any("duplicate timestamps" in record.getMessage() for record in caplog.records)
    # The zero-timer duplicate closes the first run after the positive one.
    assert len(processes) == 1
    assert processes[0].end_time == BASE + timedelta(minutes=5)
    assert processes[0].completed is True


def test_policy_thresholds_are_configurable() -> None:
    run = [
        _reading(minute, min(minute + 1, 15), temperature=COLD) for minute in range(20)
    ]
    readings = [*run, _reading(20, 0, temperature=COLD)]

    strict = detect_processes(readings)
    lenient = detect_processes(readings, DetectionPolicy(target_reached_percent=50))
    longer_floor = detect_processes(readings, DetectionPolicy(min_duration_minutes=25))

    assert strict[0].success is False
    assert lenient[0].success is True
    assert longer_floor == []


def test_in_range_comparison_includes_equality() -> None:
    run = [_reading(minute, minute + 1, temperature=MIN_REQUIRED) for minute in range(10)]

    (process,) = detect_processes([*run, _reading(10, 0, temperature=MIN_REQUIRED)])

    assert process.percent_above_min_temp == 100


def test_random_days_respect_process_invariants() -> None:
    rng = random.Random(1234)
    readings = []
    timer = 0
    for minute in range(24 * 60):
        if timer == 0 and rng.random() < 0.01:
            timer = 1
        elif timer and rng.random() < 0.03:
            timer = 0
        elif timer:
            timer += 1
        readings.append(
            _reading(
                minute,
                timer,
                temperature=rng.choice([0, 800, 1150, 1210, 1250]),
                target=rng.choice([0, 20, 30]),
            )
        )

    processes = detect_processes(readings)

    assert processes, "expected the generated day to contain runs"
    assert [p.id for p in processes] == list(range(1, len(processes) + 1))
    assert [p.start_time for p in processes] == sorted(p.start_time for p in processes)
    for process in processes:
        assert process.start_time <= process.end_time
        assert process.duration_minutes >= 5
        assert process.min_temperature <= process.max_temperature
        assert 0 <= process.percent_above_min_temp <= 100
        assert process.percent_target_reached >= 0
    for earlier, later in zip(processes, processes[1:]):
        assert earlier.end_time <= later.start_time
    assert detect_processes(readings) == processes


def test_round_percent_rounds_half_up() -> None:
    assert round_percent(2.5) == 3
    assert round_percent(0.5) == 1
    assert round_percent(49.49) == 49


def test_scale_raw_converts_tenths_and_rejects_bad_scale() -> None:
    assert scale_raw(1215) == 121.5
    assert scale_raw(250, 100) == 2.5
    with pytest.raises(ValueError):
        scale_raw(10, 0)
