from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterator, Literal

from dataclasses_json import config, dataclass_json

BudgetTier = Literal["low", "medium", "high"]

_iso_date = config(encoder=date.isoformat, decoder=date.fromisoformat)


@dataclass_json
@dataclass
class TripPreferences:
    budget: str = "medium"
    travel_style: str = "comfort"
    number_of_travelers: int = 1
    interests: list[str] = field(default_factory=list)

    def interests_text(self) -> str:
        """Comma-joined interests, or a generic default when none were given."""
        return ", ".join(self.interests) or "General sightseeing and local experiences"


@dataclass_json
@dataclass
class TripRequest:
    destination: str
    start_date: date = field(metadata=_iso_date)
    end_date: date = field(metadata=_iso_date)
    preferences: TripPreferences = field(default_factory=TripPreferences)

    def duration(self) -> int:
        """Whole days between the start and end dates."""
        return (self.end_date - self.start_date).days

    def day_dates(self) -> Iterator[date]:
        """Calendar date of every planned day, day 1 first."""
        for offset in range(self.duration()):
            yield self.start_date + timedelta(days=offset)
