from __future__ import annotations

from typing import Any

from .models import TemperatureUnit

KELVIN_OFFSET = 273.15


class UnsupportedUnitError(ValueError):
    """Raised when a temperature unit outside of C/F reaches the converter."""


def convert_kelvin_to_unit(kelvin: float, unit: TemperatureUnit | Any) -> float:
    if unit == TemperatureUnit.C:
        return kelvin - KELVIN_OFFSET
    if unit == TemperatureUnit.F:
        return (kelvin - KELVIN_OFFSET) * 1.8 + 32
    raise UnsupportedUnitError(f"Unknown output unit provided: {unit!r}")
