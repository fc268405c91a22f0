from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field

from .adapters.weather import (
    OpenWeatherHttpClient,
    OpenWeatherProvider,
    WeatherProvider,
    WeatherProviderError,
)
from .auth.identity import IdentityStore
from .location.service import ZipCodeGeocoder
from .logging_setup import init_logging
from .scheduler import build_scheduler
from .settings import AppSettings, EnvSecretProvider, SecretProvider, load_settings
from .storage.cache import GeocodeCache
from .validation import (
    parse_time_period,
    parse_units,
    validate_average_weather_query,
    validate_current_weather_query,
)

LOGGER = logging.getLogger(__name__)

SERVICE_NAME = "zip-weather"

bearer_scheme = HTTPBearer(auto_error=False)
router = APIRouter()


class CredentialsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str = ""
    password: str = ""


class RefreshRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    refresh_token: str = Field(default="", alias="refreshToken")


def _get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def _get_provider(request: Request) -> WeatherProvider:
    return request.app.state.provider


def _get_identity(request: Request) -> IdentityStore:
    return request.app.state.identity


def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    email = None
    if credentials is not None and credentials.scheme.lower() == "bearer":
        email = _get_identity(request).authenticate(credentials.credentials)
    if email is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return email


@router.get("/v1/Weather/Current/{zip_code}")
async def current_weather(
    request: Request,
    zip_code: str,
    units: str | None = Query(default=None),
    user: str = Depends(require_user),
) -> JSONResponse:
    errors = validate_current_weather_query(zip_code, units)
    if errors:
        return JSONResponse(errors, status_code=400)

    try:
        result = await _get_provider(request).get_current_weather(zip_code, parse_units(units))
    except WeatherProviderError:
        LOGGER.exception("Current weather lookup failed for zip code %s", zip_code)
        raise HTTPException(status_code=500, detail="Error retrieving current weather") from None

    if result is None:
        raise HTTPException(status_code=400, detail=f"No weather found for zip code {zip_code}")
    return JSONResponse(result.model_dump(mode="json", by_alias=True))


@router.get("/v1/Weather/Average/{zip_code}")
async def average_weather(
    request: Request,
    zip_code: str,
    units: str | None = Query(default=None),
    time_period: str | None = Query(default=None, alias="timePeriod"),
    user: str = Depends(require_user),
) -> JSONResponse:
    errors = validate_average_weather_query(zip_code, time_period, units)
    if errors:
        return JSONResponse(errors, status_code=400)

    try:
        result = await _get_provider(request).get_average_weather(
            zip_code,
            parse_time_period(time_period),
            parse_units(units),
        )
    except WeatherProviderError:
        LOGGER.exception("Average weather lookup failed for zip code %s", zip_code)
        raise HTTPException(status_code=500, detail="Error retrieving average weather") from None

    if result is None:
        raise HTTPException(status_code=400, detail=f"No weather found for zip code {zip_code}")
    return JSONResponse(result.model_dump(mode="json", by_alias=True))


@router.post("/register")
def register(request: Request, body: CredentialsRequest) -> JSONResponse:
    errors = _get_identity(request).register(body.email, body.password)
    if errors:
        return JSONResponse(errors, status_code=400)
    return JSONResponse({})


@router.post("/login")
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    token = _get_identity(request).login(body.email, body.password)
    if token is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return JSONResponse(token.model_dump(by_alias=True))


@router.post("/refresh")
async def refresh(request: Request, body: RefreshRequest) -> JSONResponse:
    token = _get_identity(request).refresh(body.refresh_token)
    if token is None:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    return JSONResponse(token.model_dump(by_alias=True))


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    settings = _get_settings(request)
    return JSONResponse(
        {
            "status": "ok",
            "service": SERVICE_NAME,
            "environment": settings.env.zipweather_env,
            "geocode_cache_entries": len(request.app.state.geocode_cache),
            "scheduler_running": request.app.state.scheduler.running,
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        }
    )


def create_app(
    settings: AppSettings | None = None,
    *,
    provider: WeatherProvider | None = None,
    identity: IdentityStore | None = None,
    secrets: SecretProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    start_scheduler: bool = True,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(application: FastAPI):
        app_settings = settings or load_settings()
        yaml_settings = app_settings.yaml

        cache = GeocodeCache(ttl_seconds=yaml_settings.geocode_cache.ttl_seconds)
        identity_store = identity or IdentityStore(
            access_token_ttl_seconds=yaml_settings.auth.access_token_ttl_seconds,
            refresh_token_ttl_seconds=yaml_settings.auth.refresh_token_ttl_seconds,
        )
        client = httpx.AsyncClient(
            base_url=yaml_settings.upstream.base_url,
            timeout=yaml_settings.upstream.timeout_seconds,
            transport=transport,
        )
        weather_provider = provider
        if weather_provider is None:
            http = OpenWeatherHttpClient(
                client=client,
                secrets=secrets or EnvSecretProvider(app_settings.env),
                timeout_seconds=yaml_settings.upstream.timeout_seconds,
            )
            geocoder = ZipCodeGeocoder(
                http=http,
                cache=cache,
                country_code=yaml_settings.upstream.country_code,
            )
            weather_provider = OpenWeatherProvider(geocoder=geocoder, http=http)

        scheduler = build_scheduler(app_settings, cache, identity_store)
        if start_scheduler:
            scheduler.start()

        application.state.settings = app_settings
        application.state.geocode_cache = cache
        application.state.identity = identity_store
        application.state.provider = weather_provider
        application.state.scheduler = scheduler

        try:
            yield
        finally:
            if scheduler.running:
                scheduler.shutdown(wait=False)
            await client.aclose()

    application = FastAPI(title="ZIP Weather", version="0.1.0", lifespan=lifespan)
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    import uvicorn

    settings = load_settings()
    init_logging(settings.env.zipweather_log_level)
    uvicorn.run(app, host=settings.yaml.service.host, port=settings.yaml.service.port)
