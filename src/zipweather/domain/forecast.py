from __future__ import annotations

from typing import Iterable, Sequence

from .models import DailyForecastPoint, UpstreamWeatherSnapshot


def rain_possible_today(snapshot: UpstreamWeatherSnapshot) -> bool:
    today = snapshot.current_report_date
    for point in snapshot.daily:
        if point.date == today:
            return point.has_rain
    return False


def forecast_window(daily: Iterable[DailyForecastPoint], period_days: int) -> list[DailyForecastPoint]:
    """Return the first ``period_days`` points by date, or fewer if fewer exist."""
    if period_days < 1:
        raise ValueError("period_days must be >= 1")
    ordered = sorted(daily, key=lambda point: point.date)
    return ordered[:period_days]


def mean_kelvin(points: Sequence[DailyForecastPoint]) -> float:
    if not points:
        raise ValueError("cannot average an empty forecast window")
    return sum(point.temperature.mean_kelvin for point in points) / len(points)


def rain_possible_in(points: Iterable[DailyForecastPoint]) -> bool:
    return any(point.has_rain for point in points)
