from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..domain.models import AuthToken
from .credentials import CredentialStore

LOGGER = logging.getLogger(__name__)


class WeatherAuthClient:
    """Registers and logs in users against the weather service and keeps the
    resulting token in a credential store."""

    def __init__(self, *, client: httpx.AsyncClient, store: CredentialStore) -> None:
        self._client = client
        self._store = store

    async def register_user(self, email: str, password: str) -> bool:
        response = await self._client.post("register", json={"email": email, "password": password})
        if response.is_success:
            return True
        _log_error_response(response, "registering user")
        return False

    async def login_user(self, email: str, password: str) -> bool:
        self._store.clear_token()
        response = await self._client.post("login", json={"email": email, "password": password})
        if not response.is_success:
            _log_error_response(response, "logging in user")
            return False

        token = _parse_token(response)
        if token is None:
            return False
        self._store.save_token(token)
        return True

    async def get_bearer_token(self) -> AuthToken | None:
        token = self._store.get_token()
        if token is None:
            LOGGER.error("No credentials found. Please log in first.")
            return None
        return await self.refresh_token(token)

    async def refresh_token(self, token: AuthToken) -> AuthToken | None:
        if not token.refresh_token:
            LOGGER.error("Stored credentials have no refresh token. Please log in again.")
            return None

        response = await self._client.post("refresh", json={"refreshToken": token.refresh_token})
        if not response.is_success:
            _log_error_response(response, "refreshing token")
            return None

        refreshed = _parse_token(response)
        if refreshed is not None:
            self._store.save_token(refreshed)
        return refreshed


def _parse_token(response: httpx.Response) -> AuthToken | None:
    try:
        payload: Any = response.json()
        return AuthToken.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        LOGGER.error("Service returned an invalid token: %s", exc)
        return None


def _log_error_response(response: httpx.Response, action: str) -> None:
    LOGGER.error("Error %s: %s.\n%s", action, response.status_code, response.text)
