from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..adapters.weather.base import unwrap_result
from ..adapters.weather.http import OpenWeatherHttpClient, UpstreamPayloadError
from ..domain.models import GeoCoordinate
from ..storage.cache import GeocodeCache

LOGGER = logging.getLogger(__name__)

GEOCODE_PATH = "geo/1.0/zip"
GEOCODE_ERROR_MESSAGE = "Error retrieving geocode for zip code"


def _parse_geocode(payload: dict[str, Any]) -> GeoCoordinate:
    if "lat" not in payload or "lon" not in payload:
        raise UpstreamPayloadError("Geocode response did not include coordinates")
    try:
        return GeoCoordinate(
            latitude=payload["lat"],
            longitude=payload["lon"],
            name=payload.get("name"),
            country=payload.get("country"),
        )
    except ValidationError as exc:
        raise UpstreamPayloadError("Geocode response contained invalid coordinates") from exc


class ZipCodeGeocoder:
    def __init__(
        self,
        *,
        http: OpenWeatherHttpClient,
        cache: GeocodeCache,
        country_code: str = "US",
    ) -> None:
        self._http = http
        self._cache = cache
        self._country_code = country_code

    async def resolve(self, zip_code: str, *, timeout: float | None = None) -> GeoCoordinate | None:
        """Return the coordinates of ``zip_code``, or ``None`` if the upstream has none.

        Only successful lookups are cached. Any failure other than not-found
        raises ``WeatherProviderError``.
        """
        cached = self._cache.get(zip_code)
        if cached is not None:
            LOGGER.debug("Geocode cache hit for zip code %s", zip_code)
            return cached

        LOGGER.debug("Geocode cache miss for zip code %s", zip_code)
        result = await self._http.get_json(
            GEOCODE_PATH,
            {"zip": f"{zip_code.strip()},{self._country_code}"},
            parse=_parse_geocode,
            timeout=timeout,
        )
        coordinate = unwrap_result(result, GEOCODE_ERROR_MESSAGE)
        if coordinate is None:
            LOGGER.info("No geocode found for zip code %s", zip_code)
            return None

        self._cache.put(zip_code, coordinate)
        return coordinate
