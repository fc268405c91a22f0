from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar, Union

from ...domain.models import AverageWeather, CurrentWeather, TemperatureUnit

T = TypeVar("T")


class WeatherProviderError(RuntimeError):
    """Raised when an upstream call fails for any reason other than "not found"."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class NotFound:
    pass


@dataclass(frozen=True, slots=True)
class Failure:
    error: Exception


UpstreamResult = Union[Success[T], NotFound, Failure]


def unwrap_result(result: UpstreamResult[T], message: str) -> T | None:
    """Map an upstream result to its value, ``None`` for not-found, or raise."""
    if isinstance(result, Success):
        return result.value
    if isinstance(result, NotFound):
        return None
    raise WeatherProviderError(message, result.error) from result.error


class WeatherProvider(Protocol):
    async def get_current_weather(
        self,
        zip_code: str,
        unit: TemperatureUnit,
        *,
        timeout: float | None = None,
    ) -> CurrentWeather | None:
        """Return current weather for the ZIP code, or ``None`` if there is no data."""

    async def get_average_weather(
        self,
        zip_code: str,
        period_days: int,
        unit: TemperatureUnit,
        *,
        timeout: float | None = None,
    ) -> AverageWeather | None:
        """Return the average over the next ``period_days`` days, or ``None``."""
