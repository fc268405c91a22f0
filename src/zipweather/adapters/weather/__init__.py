from .base import (
    Failure,
    NotFound,
    Success,
    UpstreamResult,
    WeatherProvider,
    WeatherProviderError,
    unwrap_result,
)
from .http import OpenWeatherHttpClient, UpstreamPayloadError
from .openweather import OpenWeatherProvider

__all__ = [
    "Failure",
    "NotFound",
    "OpenWeatherHttpClient",
    "OpenWeatherProvider",
    "Success",
    "UpstreamPayloadError",
    "UpstreamResult",
    "WeatherProvider",
    "WeatherProviderError",
    "unwrap_result",
]
