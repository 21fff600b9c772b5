"""Fixed-point register conversion."""

from __future__ import annotations

DEFAULT_TEMPERATURE_SCALE = 10.0


def scale_raw(raw: float, scale: float = DEFAULT_TEMPERATURE_SCALE) -> float:
    """Convert a raw PLC register value to engineering units.

    Temperature registers hold tenths of a degree, so ``scale_raw(1215)`` is
    121.5 °C.
    """
    if scale <= 0:
        raise ValueError(f"Scale must be positive, got {scale!r}.")
    return raw / scale
