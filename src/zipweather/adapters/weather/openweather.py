from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

from ...domain.forecast import forecast_window, mean_kelvin, rain_possible_in, rain_possible_today
from ...domain.models import (
    AverageWeather,
    CurrentWeather,
    DailyForecastPoint,
    DailyTemperature,
    GeoCoordinate,
    TemperatureUnit,
    UpstreamWeatherSnapshot,
)
from ...domain.units import convert_kelvin_to_unit
from .base import unwrap_result
from .http import OpenWeatherHttpClient, UpstreamPayloadError

if TYPE_CHECKING:
    from ...location.service import ZipCodeGeocoder

LOGGER = logging.getLogger(__name__)

ONE_CALL_PATH = "data/3.0/onecall"
WEATHER_ERROR_MESSAGE = "Error retrieving weather for zip code"


def _coerce_float(value: Any, *, field_name: str) -> float:
    if isinstance(value, bool):
        raise UpstreamPayloadError(f"Invalid numeric value for {field_name}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise UpstreamPayloadError(f"Invalid numeric value for {field_name}") from exc


def _coerce_optional_float(value: Any, *, field_name: str) -> float | None:
    if value is None:
        return None
    return _coerce_float(value, field_name=field_name)


def _utc_date(value: Any, *, field_name: str) -> date:
    try:
        timestamp = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise UpstreamPayloadError(f"Invalid unix timestamp for {field_name}") from exc
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError) as exc:
        raise UpstreamPayloadError(f"Out of range unix timestamp for {field_name}") from exc


def _parse_daily_point(item: Any, index: int) -> DailyForecastPoint:
    if not isinstance(item, dict):
        raise UpstreamPayloadError(f"daily[{index}] was not an object")
    temp = item.get("temp")
    if not isinstance(temp, dict):
        raise UpstreamPayloadError(f"daily[{index}].temp was missing")

    rain = _coerce_optional_float(item.get("rain"), field_name=f"daily[{index}].rain")
    if rain is not None and rain < 0:
        raise UpstreamPayloadError(f"daily[{index}].rain was negative")

    return DailyForecastPoint(
        date=_utc_date(item.get("dt"), field_name=f"daily[{index}].dt"),
        temperature=DailyTemperature(
            morning=_coerce_float(temp.get("morn"), field_name=f"daily[{index}].temp.morn"),
            day=_coerce_float(temp.get("day"), field_name=f"daily[{index}].temp.day"),
            evening=_coerce_float(temp.get("eve"), field_name=f"daily[{index}].temp.eve"),
            night=_coerce_float(temp.get("night"), field_name=f"daily[{index}].temp.night"),
        ),
        rain=rain,
    )


def parse_one_call_payload(payload: dict[str, Any]) -> UpstreamWeatherSnapshot:
    current = payload.get("current")
    if not isinstance(current, dict):
        raise UpstreamPayloadError("One Call response did not include current weather")

    daily_data = payload.get("daily")
    if daily_data is None:
        daily_data = []
    if not isinstance(daily_data, list):
        raise UpstreamPayloadError("One Call daily forecast was not a list")

    return UpstreamWeatherSnapshot(
        latitude=_coerce_optional_float(payload.get("lat"), field_name="lat"),
        longitude=_coerce_optional_float(payload.get("lon"), field_name="lon"),
        current_temperature_kelvin=_coerce_float(current.get("temp"), field_name="current.temp"),
        current_report_date=_utc_date(current.get("dt"), field_name="current.dt"),
        daily=tuple(_parse_daily_point(item, index) for index, item in enumerate(daily_data)),
    )


def _result_coordinates(
    coordinate: GeoCoordinate,
    snapshot: UpstreamWeatherSnapshot,
) -> tuple[float, float]:
    if snapshot.latitude is not None and snapshot.longitude is not None:
        return snapshot.latitude, snapshot.longitude
    return coordinate.latitude, coordinate.longitude


class OpenWeatherProvider:
    """Weather provider backed by the OpenWeather geocoding and One Call APIs."""

    def __init__(self, *, geocoder: ZipCodeGeocoder, http: OpenWeatherHttpClient) -> None:
        self._geocoder = geocoder
        self._http = http

    async def get_current_weather(
        self,
        zip_code: str,
        unit: TemperatureUnit,
        *,
        timeout: float | None = None,
    ) -> CurrentWeather | None:
        fetched = await self._fetch_snapshot(zip_code, timeout=timeout)
        if fetched is None:
            return None

        coordinate, snapshot = fetched
        latitude, longitude = _result_coordinates(coordinate, snapshot)
        return CurrentWeather(
            temperature=convert_kelvin_to_unit(snapshot.current_temperature_kelvin, unit),
            unit=unit,
            latitude=latitude,
            longitude=longitude,
            rain_possible_today=rain_possible_today(snapshot),
        )

    async def get_average_weather(
        self,
        zip_code: str,
        period_days: int,
        unit: TemperatureUnit,
        *,
        timeout: float | None = None,
    ) -> AverageWeather | None:
        if period_days < 1:
            raise ValueError("period_days must be >= 1")

        fetched = await self._fetch_snapshot(zip_code, timeout=timeout)
        if fetched is None:
            return None

        coordinate, snapshot = fetched
        window = forecast_window(snapshot.daily, period_days)
        if not window:
            LOGGER.info("No daily forecast returned for zip code %s", zip_code)
            return None

        latitude, longitude = _result_coordinates(coordinate, snapshot)
        return AverageWeather(
            average_temperature=convert_kelvin_to_unit(mean_kelvin(window), unit),
            unit=unit,
            latitude=latitude,
            longitude=longitude,
            rain_possible_in_period=rain_possible_in(window),
        )

    async def _fetch_snapshot(
        self,
        zip_code: str,
        *,
        timeout: float | None,
    ) -> tuple[GeoCoordinate, UpstreamWeatherSnapshot] | None:
        coordinate = await self._geocoder.resolve(zip_code, timeout=timeout)
        if coordinate is None:
            return None

        result = await self._http.get_json(
            ONE_CALL_PATH,
            {"lat": coordinate.latitude, "lon": coordinate.longitude},
            parse=parse_one_call_payload,
            timeout=timeout,
        )
        snapshot = unwrap_result(result, WEATHER_ERROR_MESSAGE)
        if snapshot is None:
            LOGGER.info("No weather found for zip code %s", zip_code)
            return None
        return coordinate, snapshot
