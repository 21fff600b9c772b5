from __future__ import annotations

from typing import Iterable

from datastore.plc_store import build_default_store
from services.monitor import build_default_monitor
from settings import DEFAULT_PLC_NAMES, get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    database_path = tmp_path / "nested" / "plc.db"

    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{database_path}")
    monkeypatch.setenv("PLC_TABLE_PREFIX", "Autoclave_")
    monkeypatch.setenv("PLC_NAMES", "PLC_07, PLC_08,")
    monkeypatch.setenv("STATUS_WORKER_COUNT", "2")
    monkeypatch.setenv("TARGET_REACHED_PERCENT", "80")
    monkeypatch.setenv("MIN_PROCESS_MINUTES", "10")
    monkeypatch.setenv("STATUS_OFFLINE_SECONDS", "600")

    caches = (get_settings, build_default_store, build_default_monitor)
    _clear_caches(caches)

    store = build_default_store()
    monitor = build_default_monitor()

    try:
        assert database_path.parent.is_dir()
        assert store.table_prefix == "Autoclave_"
        assert [plc.name for plc in monitor.plcs] == ["PLC_07", "PLC_08"]
        assert monitor.executor._max_workers == 2
        assert monitor.detection_policy.target_reached_percent == 80.0
        assert monitor.detection_policy.min_duration_minutes == 10.0
        assert monitor.detection_policy.above_min_temp_percent == 60.0
        assert monitor.offline_seconds == 600.0
        assert monitor.warning_seconds == 60.0
    finally:
        monitor.shutdown()
        build_default_monitor.cache_clear()
        build_default_store.cache_clear()
        get_settings.cache_clear()


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("PLC_NAMES", " , ")
    monkeypatch.setenv("STATUS_WORKER_COUNT", "zero")
    monkeypatch.setenv("TEMPERATURE_SCALE", "0")
    monkeypatch.setenv("ABOVE_MIN_TEMP_PERCENT", "-5")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.plc_names == DEFAULT_PLC_NAMES
        assert settings.status_workers == 4
        assert settings.temperature_scale == 10.0
        assert settings.above_min_temp_percent == 60.0
        assert settings.log_level == "DEBUG"
    finally:
        get_settings.cache_clear()
