"""Catalog of the PLC registers stored as day-table columns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Register:
    """One PLC data register and the table column it is logged to."""

    code: str
    label: str
    description: str
    unit: str = ""
    indicator: bool = False


REGISTERS: Tuple[Register, ...] = (
    Register("D500", "Pressure", "Main pressure sensor", "bar"),
    Register("D501", "Pressure_min", "Condition min pressure", "bar"),
    Register("D502", "Temputare_main", "Main temperature sensor", "°C"),
    Register("D503", "Temputare_1", "Temperature sensor 1", "°C"),
    Register("D504", "Temputare_2", "Temperature sensor 2", "°C"),
    Register("D505", "Temputare_3", "Temperature sensor 3", "°C"),
    Register("D506", "Temputare_4", "Temperature sensor 4", "°C"),
    Register("D507", "Temputare_min", "Condition min temperature", "°C"),
    Register("D508", "Temputare_max", "Condition max temperature", "°C"),
    Register("D513", "Temputare_Calibre_1", "Calibrated temperature 1", "°C"),
    Register("D514", "Temputare_Calibre_2", "Calibrated temperature 2", "°C"),
    Register("D515", "Temputare_Calibre_3", "Calibrated temperature 3", "°C"),
    Register("D516", "Temputare_Calibre_4", "Calibrated temperature 4", "°C"),
    Register("D520", "Time_Main", "Target sterilization time", "min"),
    Register("D521", "Time_Minute_Run", "Run timer", "min"),
    Register("D522", "Time_Second_Run", "Run timer seconds", "s"),
    Register("D525", "GREEN", "Autoclave running", indicator=True),
    Register("D526", "RED", "Temperature error", indicator=True),
    Register("D527", "YELLOW", "Timer reached zero", indicator=True),
)

_BY_LABEL: Dict[str, Register] = {register.label: register for register in REGISTERS}


def register_for(label: str) -> Optional[Register]:
    return _BY_LABEL.get(label)


def register_labels() -> Tuple[str, ...]:
    return tuple(register.label for register in REGISTERS)
