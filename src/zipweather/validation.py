from __future__ import annotations

import re

from .domain.models import TemperatureUnit

ZIP_CODE_PATTERN = re.compile(r"\d{5}")
MIN_TIME_PERIOD_DAYS = 2
MAX_TIME_PERIOD_DAYS = 5


def parse_units(value: str | None) -> TemperatureUnit | None:
    if value is None:
        return None
    try:
        return TemperatureUnit(value.strip().upper())
    except ValueError:
        return None


def parse_time_period(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        days = int(value.strip())
    except ValueError:
        return None
    if MIN_TIME_PERIOD_DAYS <= days <= MAX_TIME_PERIOD_DAYS:
        return days
    return None


def _zip_code_errors(zip_code: str | None) -> list[str]:
    if zip_code is None or not zip_code.strip():
        return ["Zip code is required."]
    if not ZIP_CODE_PATTERN.fullmatch(zip_code):
        return ["Zip code must be a 5-digit number."]
    return []


def _units_errors(units: str | None) -> list[str]:
    if parse_units(units) is None:
        return ["Units must be a valid temperature unit."]
    return []


def validate_current_weather_query(zip_code: str | None, units: str | None) -> list[str]:
    return _zip_code_errors(zip_code) + _units_errors(units)


def validate_average_weather_query(
    zip_code: str | None,
    time_period: str | None,
    units: str | None,
) -> list[str]:
    errors = _zip_code_errors(zip_code)
    if time_period is None or not time_period.strip():
        errors.append("Time period is required.")
    elif parse_time_period(time_period) is None:
        errors.append(
            f"Time period must be an integer between {MIN_TIME_PERIOD_DAYS} and {MAX_TIME_PERIOD_DAYS}."
        )
    return errors + _units_errors(units)
