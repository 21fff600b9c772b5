"""Errors shared between the store and detection layers."""

from __future__ import annotations

from typing import Iterable


class IncompatibleDataError(ValueError):
    """Raised when stored readings lack a field that detection depends on.

    Distinct from an empty day: the caller should report the data as unusable
    rather than as "no sterilization happened".
    """

    def __init__(self, missing_fields: Iterable[str]) -> None:
        self.missing_fields = list(missing_fields)
        super().__init__(
            "Readings are incompatible with process detection; missing fields: "
            + ", ".join(self.missing_fields)
        )
