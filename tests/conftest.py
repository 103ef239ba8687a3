import random
import sys
import os
import pytest
from datetime import date

# Project root: needed for TripRequest, itinerary_models, mock_data, etc.
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from TripRequest import TripPreferences, TripRequest
from agents.planning_agent import TripPlanner
from itinerary_models import Coordinates, Degraded, Ok
from mock_data import generate_mock_weather


LISBON = Coordinates(latitude=38.7223, longitude=-9.1393)


class FakeProviders:
    """In-memory geocoder / weather / text providers that record every call."""

    def __init__(self, text="", text_error=None, geocode_error=None, weather_degraded=False):
        self.text = text
        self.text_error = text_error
        self.geocode_error = geocode_error
        self.weather_degraded = weather_degraded
        self.calls = []
        self.prompts = []

    async def geocode(self, destination):
        self.calls.append("geocode")
        if self.geocode_error:
            raise self.geocode_error
        return LISBON

    async def forecast(self, lat, lon, days, start=None):
        self.calls.append("forecast")
        snapshots = generate_mock_weather(start, days, random.Random(7))
        if self.weather_degraded:
            return Degraded(snapshots, "no api key")
        return Ok(snapshots)

    async def complete(self, prompt, system_instruction):
        self.calls.append("complete")
        self.prompts.append(prompt)
        if self.text_error:
            raise self.text_error
        return self.text

    def planner(self):
        return TripPlanner(self.geocode, self.forecast, self.complete)


@pytest.fixture
def providers():
    """Factory: providers(text=..., text_error=...) -> FakeProviders."""
    return FakeProviders


@pytest.fixture
def trip_request():
    return TripRequest(
        destination="Lisbon",
        start_date=date(2024, 6, 1),
        end_date=date(2024, 6, 4),
        preferences=TripPreferences(
            budget="medium",
            travel_style="cultural",
            number_of_travelers=2,
            interests=["food", "history"],
        ),
    )


@pytest.fixture
def reversed_request():
    return TripRequest(
        destination="Lisbon",
        start_date=date(2024, 6, 4),
        end_date=date(2024, 6, 1),
    )


SAMPLE_PLAN = """\
A relaxed three days in Lisbon mixing history, food and views.

Day 1: Alfama and the old town
9:00 AM Visit the Castelo de Sao Jorge
12:30 PM Lunch at a tasca in Alfama
- Sunset at Miradouro da Senhora do Monte
Day 2: Belem
10 am Jeronimos Monastery museum visit
Afternoon pastel de nata at a famous cafe
Day 3: Sintra
8:30 Train to Sintra from Rossio
Hike up to Pena Palace gardens

Tips: buy a Viva Viagem card
Wear comfortable shoes on the hills
"""


@pytest.fixture
def sample_plan():
    return SAMPLE_PLAN
