from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..adapters.weather.base import WeatherProviderError
from ..domain.models import AverageWeather, CurrentWeather, TemperatureUnit

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class AuthenticationRequiredError(RuntimeError):
    """Raised when the weather service rejects the bearer token."""


class WeatherApiClient:
    """Weather provider that calls a running zip-weather service.

    Rejected queries and unknown ZIP codes come back as ``None`` so callers
    handle them the same way as the upstream provider.
    """

    def __init__(self, *, client: httpx.AsyncClient, access_token: str) -> None:
        self._client = client
        self._headers = {"Authorization": f"Bearer {access_token}"}

    async def get_current_weather(
        self,
        zip_code: str,
        unit: TemperatureUnit,
        *,
        timeout: float | None = None,
    ) -> CurrentWeather | None:
        return await self._get(
            f"v1/Weather/Current/{quote(zip_code, safe='')}",
            {"units": TemperatureUnit(unit).value},
            parse=CurrentWeather.model_validate,
            action="current weather",
            timeout=timeout,
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
        return await self._get(
            f"v1/Weather/Average/{quote(zip_code, safe='')}",
            {"units": TemperatureUnit(unit).value, "timePeriod": period_days},
            parse=AverageWeather.model_validate,
            action="average weather",
            timeout=timeout,
        )

    async def _get(
        self,
        path: str,
        params: dict[str, Any],
        *,
        parse: Callable[[Any], T],
        action: str,
        timeout: float | None,
    ) -> T | None:
        kwargs: dict[str, Any] = {"params": params, "headers": self._headers}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await self._client.get(path, **kwargs)
        except httpx.HTTPError as exc:
            raise WeatherProviderError(f"Error fetching {action}: {exc}", exc) from exc

        if response.status_code in (httpx.codes.BAD_REQUEST, httpx.codes.NOT_FOUND):
            LOGGER.info("Service rejected %s request: %s", action, response.text)
            return None
        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthenticationRequiredError("The weather service rejected the credentials. Please log in again.")

        try:
            response.raise_for_status()
            return parse(response.json())
        except httpx.HTTPStatusError as exc:
            raise WeatherProviderError(f"Error fetching {action}: {response.status_code}", exc) from exc
        except (ValueError, ValidationError) as exc:
            raise WeatherProviderError(f"Error fetching {action}: invalid response", exc) from exc
