from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TemperatureUnit(str, Enum):
    C = "C"
    F = "F"


class GeoCoordinate(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    name: str | None = None
    country: str | None = None

    @field_validator("name", "country")
    @classmethod
    def validate_optional_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None


class DailyTemperature(BaseModel):
    """Temperature components of a single forecast day, in Kelvin."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    morning: float
    day: float
    evening: float
    night: float

    @property
    def mean_kelvin(self) -> float:
        return (self.morning + self.day + self.evening + self.night) / 4


class DailyForecastPoint(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    date: date
    temperature: DailyTemperature
    rain: float | None = Field(default=None, ge=0)

    @property
    def has_rain(self) -> bool:
        return self.rain is not None and self.rain > 0


class UpstreamWeatherSnapshot(BaseModel):
    """One upstream weather response, parsed but not yet interpreted.

    ``latitude``/``longitude`` are the coordinates echoed by the upstream
    provider, if it sent them. ``daily`` keeps the upstream order.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    latitude: float | None = None
    longitude: float | None = None
    current_temperature_kelvin: float
    current_report_date: date
    daily: tuple[DailyForecastPoint, ...] = ()


class CurrentWeather(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: float = Field(alias="currentTemperature")
    unit: TemperatureUnit
    latitude: float = Field(alias="lat")
    longitude: float = Field(alias="long")
    rain_possible_today: bool = Field(alias="rainPossibleToday")

    def __str__(self) -> str:
        return (
            f"Location: {self.latitude},{self.longitude}\n"
            f"Current Temperature: {self.temperature}\n"
            f"Temperature Unit: {self.unit.value}\n"
            f"Rain Possible Today: {'yes' if self.rain_possible_today else 'no'}"
        )


class AverageWeather(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    average_temperature: float = Field(alias="averageTemperature")
    unit: TemperatureUnit
    latitude: float = Field(alias="lat")
    longitude: float = Field(alias="lon")
    rain_possible_in_period: bool = Field(alias="rainPossibleInPeriod")

    def __str__(self) -> str:
        return (
            f"Location: {self.latitude},{self.longitude}\n"
            f"Average Temperature: {self.average_temperature}\n"
            f"Temperature Unit: {self.unit.value}\n"
            f"Rain Possible In Period: {'yes' if self.rain_possible_in_period else 'no'}"
        )


class AuthToken(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    token_type: str = Field(default="Bearer", alias="tokenType")
    access_token: str = Field(alias="accessToken")
    expires_in: int = Field(default=0, ge=0, alias="expiresIn")
    refresh_token: str | None = Field(default=None, alias="refreshToken")

    @field_validator("access_token")
    @classmethod
    def validate_access_token(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("access token must not be empty")
        return text
