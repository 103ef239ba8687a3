"""
Keyword classifier for a single line of itinerary text.

Both tables are ordered (predicate, result) pairs evaluated top to bottom;
the first predicate that matches wins, so the order below is significant.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from itinerary_models import ActivityCategory

Predicate = Callable[[str], bool]


class Classification(NamedTuple):
    category: ActivityCategory
    estimated_cost: float


def _mentions(*keywords: str) -> Predicate:
    """Predicate matching lowercase text that contains any of *keywords*."""
    return lambda lower: any(kw in lower for kw in keywords)


CATEGORY_RULES: list[tuple[Predicate, ActivityCategory]] = [
    (_mentions("restaurant", "dinner", "lunch", "breakfast", "cafe"), ActivityCategory.DINING),
    (_mentions("hotel", "accommodation", "stay"), ActivityCategory.ACCOMMODATION),
    (_mentions("tour", "hike", "adventure", "activity"), ActivityCategory.ACTIVITY),
    (_mentions("shop", "market", "store"), ActivityCategory.SHOPPING),
    (_mentions("transport", "taxi", "train", "bus"), ActivityCategory.TRANSPORT),
]

COST_RULES: list[tuple[Predicate, float]] = [
    (_mentions("luxury", "fine dining"), 150),
    (_mentions("restaurant", "dinner"), 60),
    (_mentions("cafe", "lunch"), 30),
    (_mentions("museum", "tour"), 25),
    (_mentions("hike", "walk"), 0),
    (_mentions("activity"), 50),
]

DEFAULT_CATEGORY = ActivityCategory.ATTRACTION
DEFAULT_COST: float = 0


def categorize(text: str) -> ActivityCategory:
    lower = text.lower()
    for matches, category in CATEGORY_RULES:
        if matches(lower):
            return category
    return DEFAULT_CATEGORY


def estimate_cost(text: str) -> float:
    lower = text.lower()
    for matches, cost in COST_RULES:
        if matches(lower):
            return cost
    return DEFAULT_COST


def classify(text: str) -> Classification:
    """Category and estimated cost for *text*. Total: never raises."""
    return Classification(categorize(text), estimate_cost(text))
