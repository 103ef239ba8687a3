"""
Line-oriented parser for free-form trip plans.

The text-generation provider returns prose with no guaranteed schema, so
this is a best-effort single forward pass. Each line advances an explicit
ParserState through ``step``; lines that survive the header filter are
turned into Activity objects and classified. Malformed input degrades to
sparse or empty day lists, never to an exception. Deciding whether a sparse
result is good enough is the planner's job, not the parser's.

    parsed = parse(raw_text, number_of_days=3, destination="Lisbon")
    parsed.day_activities[0]   # activities for day 1
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from agents.activity_classifier import classify
from itinerary_models import (
    DEFAULT_ACTIVITY_MINUTES,
    DEFAULT_ACTIVITY_TIME,
    Activity,
    Location,
)

# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

_DAY_MARKER = re.compile(r"\b[Dd]ay\s+(\d+)")
_LEADING_TIME = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b", re.IGNORECASE)
_BULLET_PREFIX = re.compile(r"^[-•*]\s*")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

# Untimed lines starting with this marker are not accepted as activities.
_UNTIMED_BULLET = "•"
_MIN_UNTIMED_LENGTH = 10

SECTION_HEADER_KEYWORDS = ("day", "activities", "dining", "recommended", "overall")
TIPS_TRIGGER = "tip"
TIPS_EXCLUDE = "overall"


class ParseMode(Enum):
    COLLECTING_SUMMARY = "collecting_summary"
    IN_DAY = "in_day"


@dataclass(frozen=True)
class ParserState:
    mode: ParseMode = ParseMode.COLLECTING_SUMMARY
    current_day: int = 0
    summary: str = ""
    tips: str = ""
    collecting_tips: bool = False


@dataclass
class ParsedItinerary:
    summary: str
    tips: str
    day_activities: list[list[Activity]]

    def sparsest_day(self) -> int:
        """Activity count of the emptiest day (0 for a zero-day parse)."""
        return min((len(acts) for acts in self.day_activities), default=0)


@dataclass
class ParsedDay:
    activities: list[Activity]
    notes: str = ""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _append(buffer: str, text: str) -> str:
    return f"{buffer} {text}" if buffer else text


def _strip_bullet(text: str) -> str:
    return _BULLET_PREFIX.sub("", text, count=1)


def _activity_name(body: str) -> str:
    # Truncates at the first hyphen, so "Self-Guided Tour" becomes "Self".
    return body.split("-", 1)[0].strip() or body


def _parse_time(text: str) -> Optional[str]:
    """``HH:MM`` (24-hour) for a leading time token, else None."""
    match = _LEADING_TIME.match(text)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or "").lower()
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem == "pm" else 0)
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def _build_activity(
    text: str, day_index: int, ordinal: int, destination: str,
    time: str = DEFAULT_ACTIVITY_TIME, notes: str = "",
) -> Activity:
    body = _strip_bullet(text)
    category, cost = classify(text)
    return Activity(
        id=f"activity-{day_index}-{ordinal}",
        name=_activity_name(body),
        description=body,
        location=Location(name=destination),
        time=time,
        duration=DEFAULT_ACTIVITY_MINUTES,
        category=category,
        estimated_cost=cost,
        notes=notes,
    )


def _line_to_activity(
    text: str, day_index: int, ordinal: int, destination: str,
) -> Optional[Activity]:
    time = _parse_time(_strip_bullet(text))
    if time is None and (len(text) <= _MIN_UNTIMED_LENGTH or text.startswith(_UNTIMED_BULLET)):
        return None
    return _build_activity(text, day_index, ordinal, destination, time or DEFAULT_ACTIVITY_TIME)


def _safe_json_parse(text: str) -> Any:
    """Extract and parse JSON from an LLM response that may include markdown fences."""
    cleaned = text.strip()
    if "```json" in cleaned:
        cleaned = cleaned.split("```json", 1)[1].split("```", 1)[0]
    elif "```" in cleaned:
        cleaned = cleaned.split("```", 1)[1].split("```", 1)[0]
    return json.loads(cleaned.strip())


def _extract_json_object(text: str) -> Optional[dict]:
    """The first JSON object in *text*, tolerating fences and surrounding prose."""
    if not text or not text.strip():
        return None
    try:
        parsed = _safe_json_parse(text)
    except (ValueError, RecursionError):
        match = _JSON_OBJECT.search(text)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except (ValueError, RecursionError):
            return None
    return parsed if isinstance(parsed, dict) else None


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

def step(state: ParserState, line: str, number_of_days: int) -> tuple[ParserState, Optional[str]]:
    """Advance *state* by one line.

    Returns the new state and the trimmed line when it is an activity
    candidate for ``state.current_day``, otherwise None.
    """
    text = line.strip()

    marker = _DAY_MARKER.search(text)
    if marker:
        day_index = min(max(int(marker.group(1)) - 1, 0), number_of_days - 1)
        return replace(state, mode=ParseMode.IN_DAY, current_day=day_index), None

    if not text:
        return state, None

    lower = text.lower()
    if state.mode is ParseMode.COLLECTING_SUMMARY:
        state = replace(state, summary=_append(state.summary, text))

    # Only the line that opens the tips block is withheld from the activities.
    opens_tips = not state.collecting_tips and TIPS_TRIGGER in lower
    if state.collecting_tips or opens_tips:
        state = replace(state, collecting_tips=True)
        if TIPS_EXCLUDE not in lower:
            state = replace(state, tips=_append(state.tips, text))

    if not 0 <= state.current_day < number_of_days:
        return state, None
    if opens_tips or any(keyword in lower for keyword in SECTION_HEADER_KEYWORDS):
        return state, None
    return state, text


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(raw_text: str, number_of_days: int, destination: str) -> ParsedItinerary:
    """Split *raw_text* into a trip summary, tips and per-day activities.

    Always returns exactly ``number_of_days`` activity lists.
    """
    day_activities: list[list[Activity]] = [[] for _ in range(max(number_of_days, 0))]
    state = ParserState()

    for line in (raw_text or "").splitlines():
        state, candidate = step(state, line, number_of_days)
        if candidate is None:
            continue
        bucket = day_activities[state.current_day]
        activity = _line_to_activity(candidate, state.current_day, len(bucket), destination)
        if activity is not None:
            bucket.append(activity)

    return ParsedItinerary(
        summary=state.summary.strip(),
        tips=state.tips.strip(),
        day_activities=day_activities,
    )


_DAY_SLOTS = (("morning", "09:00"), ("afternoon", "12:00"), ("evening", "17:00"))


def parse_day(raw_text: str, day_number: int, destination: str) -> ParsedDay:
    """Parse a single-day response.

    Prefers a ``{"morning", "afternoon", "evening", "notes"}`` JSON object;
    anything else goes through the line parser as a one-day trip.
    """
    day_index = day_number - 1
    payload = _extract_json_object(raw_text)

    if payload is not None:
        activities: list[Activity] = []
        for slot, start_time in _DAY_SLOTS:
            text = payload.get(slot)
            if not isinstance(text, str) or not text.strip():
                continue
            activities.append(_build_activity(
                text.strip(), day_index, len(activities), destination, start_time,
                notes=slot.capitalize(),
            ))
        notes = payload.get("notes")
        return ParsedDay(activities, notes.strip() if isinstance(notes, str) else "")

    parsed = parse(raw_text, 1, destination)
    activities = [
        replace(activity, id=f"activity-{day_index}-{ordinal}")
        for ordinal, activity in enumerate(parsed.day_activities[0])
    ]
    return ParsedDay(activities, parsed.tips)
