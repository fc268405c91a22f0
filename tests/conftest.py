from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import httpx
import pytest

from zipweather.adapters.weather import OpenWeatherHttpClient, OpenWeatherProvider
from zipweather.location.service import ZipCodeGeocoder
from zipweather.settings import AppSettings, EnvSettings, ZipWeatherYamlSettings
from zipweather.storage.cache import GeocodeCache

UPSTREAM_BASE_URL = "https://api.openweathermap.org/"
GEOCODE_PATH = "geo/1.0/zip"
ONE_CALL_PATH = "data/3.0/onecall"

# 2024-06-01T00:00:00Z
DAY_ZERO = 1_717_200_000
DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticSecrets:
    def __init__(self, value: str = "test-api-key") -> None:
        self.value = value
        self.requested: list[str] = []

    def get_secret(self, name: str) -> str:
        self.requested.append(name)
        return self.value


class FakeUpstream:
    """Routes requests by path to canned responses and records every call."""

    def __init__(self) -> None:
        self._routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def respond(self, path: str, status_code: int = 200, json: Any = None, content: bytes | None = None) -> None:
        self._routes[path] = (status_code, json, content)

    def fail(self, path: str, exc_type: type[httpx.HTTPError]) -> None:
        self._routes[path] = exc_type

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path.lstrip("/") == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get(request.url.path.lstrip("/"))
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if isinstance(route, type):
            raise route("simulated transport failure", request=request)
        status_code, payload, content = route
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def daily_item(
    offset_days: int,
    *,
    morn: float = 290.0,
    day: float = 295.0,
    eve: float = 292.0,
    night: float = 287.0,
    rain: float | None = None,
) -> dict[str, Any]:
    item: dict[str, Any] = {
        "dt": DAY_ZERO + offset_days * DAY + 12 * 60 * 60,
        "temp": {"morn": morn, "day": day, "eve": eve, "night": night},
    }
    if rain is not None:
        item["rain"] = rain
    return item


def one_call_payload(
    *,
    current_temp: float = 293.15,
    current_offset_days: int = 0,
    daily: list[dict[str, Any]] | None = None,
    lat: float | None = 40.75,
    lon: float | None = -73.99,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "current": {"temp": current_temp, "dt": DAY_ZERO + current_offset_days * DAY + 9 * 60 * 60},
        "daily": daily if daily is not None else [daily_item(0)],
    }
    if lat is not None:
        payload["lat"] = lat
    if lon is not None:
        payload["lon"] = lon
    return payload


def geocode_payload(lat: float = 40.7484, lon: float = -73.9967) -> dict[str, Any]:
    return {"zip": "10001", "name": "New York", "lat": lat, "lon": lon, "country": "US"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def secrets() -> StaticSecrets:
    return StaticSecrets()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def payloads():
    """Builders for upstream response bodies."""

    class Payloads:
        daily = staticmethod(daily_item)
        one_call = staticmethod(one_call_payload)
        geocode = staticmethod(geocode_payload)

    return Payloads


@pytest.fixture
def geocode_cache(clock: FakeClock) -> GeocodeCache:
    return GeocodeCache(ttl_seconds=DAY, time_func=clock)


@pytest.fixture
def http_client(upstream: FakeUpstream, secrets: StaticSecrets):
    client = httpx.AsyncClient(base_url=UPSTREAM_BASE_URL, transport=upstream.transport)
    yield OpenWeatherHttpClient(client=client, secrets=secrets, timeout_seconds=5.0)
    asyncio.run(client.aclose())


@pytest.fixture
def geocoder(http_client: OpenWeatherHttpClient, geocode_cache: GeocodeCache) -> ZipCodeGeocoder:
    return ZipCodeGeocoder(http=http_client, cache=geocode_cache, country_code="US")


@pytest.fixture
def provider(geocoder: ZipCodeGeocoder, http_client: OpenWeatherHttpClient) -> OpenWeatherProvider:
    return OpenWeatherProvider(geocoder=geocoder, http=http_client)


@pytest.fixture
def app_settings(tmp_path: Path) -> AppSettings:
    env = EnvSettings(
        _env_file=None,
        zipweather_env="test",
        zipweather_openweather_api_key="test-api-key",
    )
    return AppSettings(
        env=env,
        yaml=ZipWeatherYamlSettings(),
        project_root=tmp_path,
        config_path=tmp_path / "zipweather.yaml",
    )
