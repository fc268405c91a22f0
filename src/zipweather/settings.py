from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Protocol
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]

OPENWEATHER_API_KEY_SECRET = "openweather_api_key"


class MissingSecretError(LookupError):
    """Raised when a named secret is unknown or has no value configured."""


class UpstreamSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    base_url: str = "https://api.openweathermap.org/"
    timeout_seconds: float = Field(default=10.0, gt=0, le=120)
    country_code: str = "US"

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        text = value.strip()
        parsed = urlparse(text)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("upstream.base_url must be an absolute http(s) URL")
        if not text.endswith("/"):
            text = f"{text}/"
        return text

    @field_validator("country_code")
    @classmethod
    def validate_country_code(cls, value: str) -> str:
        text = value.strip().upper()
        if len(text) != 2 or not text.isalpha():
            raise ValueError("upstream.country_code must be a two-letter country code")
        return text


class GeocodeCacheSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ttl_seconds: int = Field(default=24 * 60 * 60, ge=1)
    prune_interval_minutes: int = Field(default=60, ge=1, le=24 * 60)


class AuthSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token_ttl_seconds: int = Field(default=3600, ge=60)
    refresh_token_ttl_seconds: int = Field(default=14 * 24 * 60 * 60, ge=60)
    prune_interval_minutes: int = Field(default=30, ge=1, le=24 * 60)


class ServiceSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    host: str = "127.0.0.1"
    port: int = Field(default=5000, ge=1, le=65535)


class ZipWeatherYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    geocode_cache: GeocodeCacheSettings = Field(default_factory=GeocodeCacheSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    service: ServiceSettings = Field(default_factory=ServiceSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    zipweather_env: Literal["dev", "test", "prod"] = "dev"
    zipweather_config_path: Path = Path("config/zipweather.yaml")
    zipweather_log_level: str = "INFO"
    zipweather_openweather_api_key: SecretStr = SecretStr("")

    @field_validator("zipweather_log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


class AppSettings(BaseModel):
    env: EnvSettings
    yaml: ZipWeatherYamlSettings
    project_root: Path
    config_path: Path


class SecretProvider(Protocol):
    def get_secret(self, name: str) -> str:
        """Return the value of the named secret."""


class EnvSecretProvider:
    """Serves secrets out of the environment-backed settings."""

    def __init__(self, env: EnvSettings) -> None:
        self._secrets: dict[str, SecretStr] = {
            OPENWEATHER_API_KEY_SECRET: env.zipweather_openweather_api_key,
        }

    def get_secret(self, name: str) -> str:
        secret = self._secrets.get(name)
        if secret is None:
            raise MissingSecretError(f"Unknown secret: {name}")
        value = secret.get_secret_value().strip()
        if not value:
            raise MissingSecretError(f"Secret '{name}' is not configured")
        return value


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def load_yaml_settings(path: Path) -> ZipWeatherYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Config must be a YAML mapping/object at the top level")
    return ZipWeatherYamlSettings.model_validate(raw_config)


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    env = EnvSettings()
    config_path = _resolve_project_path(env.zipweather_config_path)
    yaml_settings = load_yaml_settings(config_path)
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=config_path,
    )
