"""
Typed itinerary model shared by the parser, the fallback builder and the
planner. Every class serialises through dataclasses_json so the calling
layer can persist or return it as-is.
"""
import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from dataclasses_json import config, dataclass_json

from TripRequest import TripPreferences

_iso_date = config(encoder=dt.date.isoformat, decoder=dt.date.fromisoformat)


class ActivityCategory(str, Enum):
    ATTRACTION = "attraction"
    DINING = "dining"
    ACCOMMODATION = "accommodation"
    TRANSPORT = "transport"
    SHOPPING = "shopping"
    ACTIVITY = "activity"


class Provenance(str, Enum):
    SYNTHESIZED = "synthesized"
    FALLBACK = "fallback"
    USER_AUTHORED = "user_authored"


DEFAULT_ACTIVITY_TIME = "09:00"
DEFAULT_ACTIVITY_MINUTES = 120


@dataclass_json
@dataclass
class Coordinates:
    latitude: float
    longitude: float


@dataclass_json
@dataclass
class Location:
    name: str
    latitude: float = 0.0
    longitude: float = 0.0

    def is_resolved(self) -> bool:
        return bool(self.latitude or self.longitude)


@dataclass_json
@dataclass
class Activity:
    id: str
    name: str
    description: str
    location: Location
    time: str = DEFAULT_ACTIVITY_TIME
    duration: int = DEFAULT_ACTIVITY_MINUTES
    category: ActivityCategory = ActivityCategory.ATTRACTION
    estimated_cost: float = 0
    notes: str = ""


@dataclass_json
@dataclass
class WeatherSnapshot:
    date: dt.date = field(metadata=_iso_date)
    temperature: int
    feels_like: int
    condition: str
    humidity: int
    wind_speed: int
    icon: str


@dataclass_json
@dataclass
class DayPlan:
    day: int
    date: dt.date = field(metadata=_iso_date)
    activities: list[Activity] = field(default_factory=list)
    weather: Optional[WeatherSnapshot] = None
    summary: str = ""
    notes: str = ""


@dataclass_json
@dataclass
class MapLocation:
    name: str
    latitude: float
    longitude: float
    kind: str = "attraction"  # attraction | restaurant | hotel
    description: str = ""


@dataclass_json
@dataclass
class Itinerary:
    destination: str
    coordinates: Coordinates
    start_date: dt.date = field(metadata=_iso_date)
    end_date: dt.date = field(metadata=_iso_date)
    duration: int
    days: list[DayPlan]
    provenance: Provenance
    summary: str = ""
    tips: str = ""
    preferences: TripPreferences = field(default_factory=TripPreferences)
    map_locations: list[MapLocation] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Provider outcomes: a usable value either way, plus whether it was degraded
# ---------------------------------------------------------------------------

@dataclass
class Ok:
    value: Any
    degraded = False


@dataclass
class Degraded:
    value: Any
    reason: str
    degraded = True


Outcome = Union[Ok, Degraded]
