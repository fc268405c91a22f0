from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..domain.models import AuthToken

LOGGER = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 120_000
MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True, slots=True)
class _UserRecord:
    email: str
    salt: bytes
    password_hash: bytes


@dataclass(frozen=True, slots=True)
class _IssuedToken:
    email: str
    expires_at: float


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)


def validate_registration(email: str, password: str) -> list[str]:
    errors: list[str] = []
    text = email.strip()
    if not text:
        errors.append("Email is required.")
    elif "@" not in text or text.startswith("@") or text.endswith("@"):
        errors.append(f"Email '{text}' is invalid.")
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters.")
    if not any(char.isdigit() for char in password):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    return errors


class IdentityStore:
    """In-memory users and opaque bearer tokens.

    Refresh tokens are single use: a successful refresh revokes the old
    refresh token and issues a new pair.
    """

    def __init__(
        self,
        *,
        access_token_ttl_seconds: int = 3600,
        refresh_token_ttl_seconds: int = 14 * 24 * 60 * 60,
        time_func: Callable[[], float] = time.time,
    ) -> None:
        self._access_ttl = access_token_ttl_seconds
        self._refresh_ttl = refresh_token_ttl_seconds
        self._time_func = time_func
        self._users: dict[str, _UserRecord] = {}
        self._access_tokens: dict[str, _IssuedToken] = {}
        self._refresh_tokens: dict[str, _IssuedToken] = {}
        self._lock = threading.Lock()

    def register(self, email: str, password: str) -> list[str]:
        errors = validate_registration(email, password)
        if errors:
            return errors

        key = _normalize_email(email)
        salt = secrets.token_bytes(16)
        record = _UserRecord(email=key, salt=salt, password_hash=_hash_password(password, salt))
        with self._lock:
            if key in self._users:
                return [f"Username '{email.strip()}' is already taken."]
            self._users[key] = record
        LOGGER.info("Registered user %s", key)
        return []

    def login(self, email: str, password: str) -> AuthToken | None:
        record = self._users.get(_normalize_email(email))
        if record is None:
            return None
        candidate = _hash_password(password, record.salt)
        if not hmac.compare_digest(candidate, record.password_hash):
            LOGGER.info("Failed login for %s", record.email)
            return None
        return self._issue(record.email)

    def refresh(self, refresh_token: str) -> AuthToken | None:
        now = self._time_func()
        with self._lock:
            issued = self._refresh_tokens.pop(refresh_token, None)
        if issued is None or now >= issued.expires_at:
            return None
        return self._issue(issued.email)

    def authenticate(self, access_token: str) -> str | None:
        issued = self._access_tokens.get(access_token)
        if issued is None:
            return None
        if self._time_func() >= issued.expires_at:
            with self._lock:
                self._access_tokens.pop(access_token, None)
            return None
        return issued.email

    def prune_expired_tokens(self) -> int:
        now = self._time_func()
        removed = 0
        with self._lock:
            for tokens in (self._access_tokens, self._refresh_tokens):
                expired = [token for token, issued in tokens.items() if now >= issued.expires_at]
                for token in expired:
                    del tokens[token]
                removed += len(expired)
        return removed

    def _issue(self, email: str) -> AuthToken:
        now = self._time_func()
        access_token = secrets.token_urlsafe(32)
        refresh_token = secrets.token_urlsafe(32)
        with self._lock:
            self._access_tokens[access_token] = _IssuedToken(email=email, expires_at=now + self._access_ttl)
            self._refresh_tokens[refresh_token] = _IssuedToken(email=email, expires_at=now + self._refresh_ttl)
        return AuthToken(
            token_type="Bearer",
            access_token=access_token,
            expires_in=self._access_ttl,
            refresh_token=refresh_token,
        )
