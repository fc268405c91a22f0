from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import httpx

from ...settings import OPENWEATHER_API_KEY_SECRET, SecretProvider
from .base import Failure, NotFound, Success, UpstreamResult

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class UpstreamPayloadError(ValueError):
    """Raised by payload parsers when an upstream response has the wrong shape."""


class OpenWeatherHttpClient:
    """Performs single GET calls against OpenWeather and classifies the outcome.

    The API key is looked up from the secret provider on every call. A 404 is
    reported as ``NotFound``; transport errors, timeouts, other error statuses
    and payloads that cannot be decoded or parsed are reported as ``Failure``.
    Cancellation is never caught.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        secrets: SecretProvider,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = client
        self._secrets = secrets
        self._timeout_seconds = timeout_seconds

    async def get_json(
        self,
        path: str,
        params: dict[str, Any],
        *,
        parse: Callable[[dict[str, Any]], T],
        timeout: float | None = None,
    ) -> UpstreamResult[T]:
        query = {**params, "appid": self._secrets.get_secret(OPENWEATHER_API_KEY_SECRET)}
        effective_timeout = self._timeout_seconds if timeout is None else timeout
        try:
            response = await self._client.get(path, params=query, timeout=effective_timeout)
        except httpx.HTTPError as exc:
            LOGGER.warning("Request to %s failed: %s", path, exc)
            return Failure(exc)

        if response.status_code == httpx.codes.NOT_FOUND:
            LOGGER.info("Upstream returned not found for %s", path)
            return NotFound()

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning("Upstream returned %s for %s", response.status_code, path)
            return Failure(exc)

        try:
            payload = response.json()
        except ValueError as exc:
            error = UpstreamPayloadError(f"Invalid JSON returned for {path}")
            error.__cause__ = exc
            return Failure(error)

        if not isinstance(payload, dict):
            return Failure(UpstreamPayloadError(f"Unexpected response shape for {path}"))

        try:
            return Success(parse(payload))
        except ValueError as exc:
            return Failure(exc)
