"""
OpenWeatherMap forecast integration for itinerary days.

Uses the free 5-day / 3-hour forecast and keeps the slot closest to local
noon for each date. Falls back to a pseudo-forecast from mock_data when
OPENWEATHER_API_KEY is not set or the API call fails. The caller gets an
Ok or Degraded outcome and never an exception.

Usage (from planning_agent):
    from agents.WeatherAgent import forecast

    outcome = await forecast(lat, lon, days=3, start=date(2024, 6, 1))
    snapshots = outcome.value          # always exactly `days` entries
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx

from itinerary_models import Degraded, Ok, Outcome, WeatherSnapshot
from mock_data import default_weather, generate_mock_weather

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
_MPS_TO_KMH = 3.6
_NOON = 12


def _get_api_key() -> str:
    """Read the API key lazily so that dotenv has loaded by the time we need it."""
    return os.getenv("OPENWEATHER_API_KEY", "")


def _request_timeout() -> float:
    return float(os.getenv("WEATHER_TIMEOUT_SECONDS", "10"))


# ---------------------------------------------------------------------------
# OpenWeatherMap forecast API
# ---------------------------------------------------------------------------

async def _fetch_forecast(lat: float, lon: float, client: httpx.AsyncClient) -> Dict[str, Any]:
    params = {
        "lat": lat,
        "lon": lon,
        "appid": _get_api_key(),
        "units": "metric",
    }
    resp = await client.get(_FORECAST_URL, params=params)
    resp.raise_for_status()
    return resp.json()


def _snapshots_by_date(payload: Dict[str, Any]) -> Dict[date, WeatherSnapshot]:
    """Collapse 3-hour slots into one snapshot per local date, nearest to noon."""
    utc_offset = timedelta(seconds=payload.get("city", {}).get("timezone", 0))
    best: Dict[date, tuple[int, WeatherSnapshot]] = {}

    for slot in payload["list"]:
        local = datetime.fromtimestamp(slot["dt"], tz=timezone.utc) + utc_offset
        day = local.date()
        distance = abs(local.hour - _NOON)
        if day in best and best[day][0] <= distance:
            continue
        main = slot["main"]
        conditions = slot["weather"][0]
        best[day] = (distance, WeatherSnapshot(
            date=day,
            temperature=round(main["temp"]),
            feels_like=round(main["feels_like"]),
            condition=conditions["description"],
            humidity=main["humidity"],
            wind_speed=round(slot["wind"]["speed"] * _MPS_TO_KMH),
            icon=conditions["icon"],
        ))

    return {day: snapshot for day, (_, snapshot) in best.items()}


# ---------------------------------------------------------------------------
# Core public API
# ---------------------------------------------------------------------------

async def forecast(
    lat: float,
    lon: float,
    days: int,
    start: Optional[date] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Outcome:
    """Forecast for *days* consecutive days beginning at *start* (today by default).

    Days the live forecast does not reach (it only covers about five) are
    padded with a static default snapshot so the list length always matches.
    """
    start = start or date.today()

    if not _get_api_key():
        return Degraded(generate_mock_weather(start, days), "OPENWEATHER_API_KEY is not set")

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=_request_timeout()) as owned:
                payload = await _fetch_forecast(lat, lon, owned)
        else:
            payload = await _fetch_forecast(lat, lon, client)
        by_date = _snapshots_by_date(payload)
    except Exception as exc:
        log.warning("Weather forecast failed for (%s, %s): %s", lat, lon, exc)
        return Degraded(generate_mock_weather(start, days), f"weather provider error: {exc}")

    snapshots = []
    for offset in range(max(days, 0)):
        day = start + timedelta(days=offset)
        snapshot = by_date.get(day)
        if snapshot is None:
            log.debug("No forecast for %s, using default snapshot", day)
            snapshot = default_weather(day)
        snapshots.append(snapshot)
    return Ok(snapshots)
