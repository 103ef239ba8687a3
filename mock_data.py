"""
Mock data for weather and placeholder plans - stands in for external providers
"""
import logging
import random
from datetime import date, timedelta

from itinerary_models import ActivityCategory, WeatherSnapshot

logger = logging.getLogger(__name__)

# Pseudo-forecast ranges: (low, spread)
MOCK_TEMPERATURE = (20, 10)
MOCK_HUMIDITY = (50, 30)
MOCK_WIND_KMH = (10, 10)
MOCK_CONDITION = "Partly cloudy"
MOCK_ICON = "04d"

# Used when a forecast exists but has no entry for a given day
DEFAULT_WEATHER = {
    "temperature": 20,
    "feels_like": 20,
    "condition": "Clear",
    "humidity": 50,
    "wind_speed": 5,
    "icon": "01d",
}

# Placeholder activities: (start_time, name, category, estimated_cost)
FALLBACK_DAY_TEMPLATE = [
    ("09:00", "Explore local attractions and landmarks", ActivityCategory.ATTRACTION, 0),
    ("13:00", "Visit museums or cultural sites", ActivityCategory.ATTRACTION, 25),
    ("18:00", "Dinner at local restaurant", ActivityCategory.DINING, 60),
]
FALLBACK_DAY_NOTES = "Adjust based on your preferences"

SINGLE_DAY_TEMPLATE = [
    ("09:00", "Explore local area", ActivityCategory.ATTRACTION, 0),
    ("12:00", "Visit popular attractions", ActivityCategory.ATTRACTION, 0),
    ("17:00", "Enjoy local cuisine", ActivityCategory.DINING, 30),
]
SINGLE_DAY_NOTES = "Adjust based on preferences"


def generate_mock_weather(start_date, days, rng=None):
    """Randomised but plausible forecast, one snapshot per day from start_date"""
    rng = rng or random.Random()
    start_date = start_date or date.today()
    logger.debug("Generating %d days of mock weather from %s", days, start_date)

    def _between(bounds):
        low, spread = bounds
        return round(low + rng.random() * spread)

    return [
        WeatherSnapshot(
            date=start_date + timedelta(days=offset),
            temperature=_between(MOCK_TEMPERATURE),
            feels_like=_between(MOCK_TEMPERATURE),
            condition=MOCK_CONDITION,
            humidity=_between(MOCK_HUMIDITY),
            wind_speed=_between(MOCK_WIND_KMH),
            icon=MOCK_ICON,
        )
        for offset in range(max(days, 0))
    ]


def default_weather(day):
    """Static snapshot for a day the forecast did not cover"""
    return WeatherSnapshot(date=day, **DEFAULT_WEATHER)
