from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from ..domain.models import AuthToken

LOGGER = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_FILE = Path(".credentials.json")


class CredentialStore(Protocol):
    def save_token(self, token: AuthToken) -> None:
        """Persist ``token``, replacing any stored token."""

    def get_token(self) -> AuthToken | None:
        """Return the stored token, if any."""

    def clear_token(self) -> None:
        """Forget the stored token."""


class FileCredentialStore:
    """Stores the current token as JSON in a file readable only by its owner."""

    def __init__(self, path: Path = DEFAULT_CREDENTIALS_FILE) -> None:
        self.path = path

    def save_token(self, token: AuthToken) -> None:
        payload = json.dumps(token.model_dump(by_alias=True))
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.chmod(self.path, 0o600)

    def get_token(self) -> AuthToken | None:
        if not self.path.exists():
            return None
        try:
            return AuthToken.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValidationError as exc:
            LOGGER.warning("Ignoring unreadable credentials file %s: %s", self.path, exc)
            return None

    def clear_token(self) -> None:
        self.path.unlink(missing_ok=True)
