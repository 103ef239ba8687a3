"""
Itinerary synthesis pipeline (litellm, async)

Turns a TripRequest into a typed Itinerary in five data-dependent steps,
each one awaited in turn:

  1. Date validation + duration   → no I/O, InvalidDateRange on bad input
  2. Destination coordinates      → GeoAgent (geopy), GeocodingFailed propagates
  3. Weather forecast             → WeatherAgent, degrades to a pseudo-forecast
  4. Free-text trip plan          → 1 LLM call under a hard timeout
  5. Parse + assemble             → itinerary_parser, or the fallback builder

Errors that make the trip impossible (bad dates, no coordinates, provider
rate limit, caller cancellation) reach the caller. Everything else only
reduces richness: the request still returns a complete itinerary, tagged
with provenance "fallback" when the text could not be used.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import replace
from datetime import date, timedelta
from typing import Awaitable, Callable, Optional

import litellm

from TripRequest import TripPreferences, TripRequest
from agents import GeoAgent, WeatherAgent
from agents.itinerary_parser import ParsedItinerary, parse, parse_day
from errors import (
    Cancelled,
    GenerationTimeout,
    InvalidDateRange,
    MalformedResponse,
    RateLimited,
    TextGenerationError,
    Unauthorized,
)
from itinerary_models import (
    Activity,
    DayPlan,
    Degraded,
    Itinerary,
    Location,
    Ok,
    Outcome,
    Provenance,
    WeatherSnapshot,
)
from mock_data import (
    FALLBACK_DAY_NOTES,
    FALLBACK_DAY_TEMPLATE,
    SINGLE_DAY_NOTES,
    SINGLE_DAY_TEMPLATE,
    default_weather,
)

logger = logging.getLogger(__name__)

# Silence litellm's own verbose logging
litellm.suppress_debug_info = True
# Drop params unsupported by the active model (e.g. temperature on gpt-5)
litellm.drop_params = True

DAY_SUMMARY_SEPARATOR = " • "


# ---------------------------------------------------------------------------
# LLM model helper  (supports OpenAI, Gemini, Claude, OpenRouter via LLM_PROVIDER)
# ---------------------------------------------------------------------------

_LLM_DEFAULTS = {
    "openai":     "gpt-4o-mini",
    "gemini":     "gemini-2.0-flash",
    "anthropic":  "claude-sonnet-4-20250514",
    "openrouter": "openai/gpt-3.5-turbo",
}


def _llm_name() -> str:
    """Return the litellm model string (provider/model format)."""
    provider = os.getenv("LLM_PROVIDER", "openai").lower().strip()
    if provider not in _LLM_DEFAULTS:
        provider = "openai"
    model = os.getenv("LLM_MODEL", _LLM_DEFAULTS[provider])
    if provider == "openai":
        return model  # litellm uses bare model name for OpenAI
    return f"{provider}/{model}"


def _llm_timeout() -> float:
    return float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))


def _llm_temperature() -> float:
    return float(os.getenv("LLM_TEMPERATURE", "0.7"))


def _min_activities_per_day() -> int:
    """Every parsed day needs at least this many activities, else the whole trip falls back."""
    return int(os.getenv("MIN_ACTIVITIES_PER_DAY", "1"))


# ---------------------------------------------------------------------------
# Core LLM call wrapper
# ---------------------------------------------------------------------------

async def complete(
    prompt: str,
    system_instruction: str,
    temperature: Optional[float] = None,
    timeout: Optional[float] = None,
) -> str:
    """Make a single litellm.acompletion() call and return the text content.

    The wait is always bounded by *timeout* (LLM_TIMEOUT_SECONDS by default).
    Provider failures are translated into the TextGenerationError family.
    """
    timeout = _llm_timeout() if timeout is None else timeout
    temperature = _llm_temperature() if temperature is None else temperature

    try:
        response = await asyncio.wait_for(
            litellm.acompletion(
                model=_llm_name(),
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": prompt},
                ],
                temperature=temperature,
                timeout=timeout,
            ),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, litellm.Timeout) as exc:
        raise GenerationTimeout(f"Text generation timed out after {timeout}s") from exc
    except litellm.RateLimitError as exc:
        raise RateLimited("Text generation rate limit exceeded. Please try again later.") from exc
    except litellm.AuthenticationError as exc:
        raise Unauthorized("Text generation authentication failed. Invalid API key.") from exc
    except Exception as exc:
        raise TextGenerationError(f"Text generation failed: {exc}") from exc

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise MalformedResponse("Invalid response format from text generation service") from exc
    if not isinstance(content, str) or not content.strip():
        raise MalformedResponse("Text generation returned an empty response")
    return content


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_ITINERARY_SYSTEM = """\
You are an expert travel planner. You write practical day-by-day plans with \
specific attraction names, restaurants and neighbourhoods, and you adapt \
outdoor plans to the weather forecast. Answer in plain text."""

_DAY_SYSTEM = "You are a travel planner. Provide detailed day plans."


def _weather_lines(weather: list[WeatherSnapshot]) -> str:
    return "\n".join(
        f"- {w.date.isoformat()}: {w.temperature}°C, {w.condition}" for w in weather
    )


def build_trip_prompt(
    request: TripRequest, duration: int, weather: Optional[list[WeatherSnapshot]] = None,
) -> str:
    prefs = request.preferences
    prompt = f"""Create a detailed {duration}-day travel itinerary for a trip to {request.destination}.

Trip Details:
- Dates: {request.start_date.isoformat()} to {request.end_date.isoformat()}
- Travel Style: {prefs.travel_style}
- Budget: {prefs.budget}
- Travelers: {prefs.number_of_travelers}
- Interests: {prefs.interests_text()}
"""
    if weather:
        prompt += f"\nWeather Forecast:\n{_weather_lines(weather)}\n"

    prompt += """
Please provide:
1. A brief summary of the trip
2. For each day, a line starting with "Day N", then:
   - One activity per line, starting with its time (e.g. "9:00 AM Visit ...")
   - Local restaurants or dining recommendations
   - Estimated costs
3. Overall tips for the destination

Use plain text with a clear day-by-day breakdown."""
    return prompt


def build_day_prompt(
    destination: str,
    day_number: int,
    day_date: date,
    preferences: TripPreferences,
    weather: Optional[WeatherSnapshot] = None,
) -> str:
    prompt = (
        f"Create a single day itinerary for day {day_number} in {destination} "
        f"on {day_date.isoformat()}.\n\n"
        f"Budget: {preferences.budget}\n"
        f"Trip Style: {preferences.travel_style}\n"
    )
    if preferences.interests:
        prompt += f"Interests: {preferences.interests_text()}\n"
    if weather:
        prompt += f"Weather: {weather.temperature}°C, {weather.condition}\n"

    prompt += """
Provide:
- Morning activity (9 AM - 12 PM)
- Afternoon activity (12 PM - 5 PM)
- Evening activity (5 PM onwards)
- Brief notes

Format as JSON:
{
  "morning": "activity",
  "afternoon": "activity",
  "evening": "activity",
  "notes": "tips"
}"""
    return prompt


# ---------------------------------------------------------------------------
# Fallback itinerary builder
# ---------------------------------------------------------------------------

def _placeholder_activities(template, day_number: int, destination: str) -> list[Activity]:
    return [
        Activity(
            id=f"day-{day_number}-{ordinal}",
            name=name,
            description=name,
            location=Location(name=destination),
            time=start_time,
            category=category,
            estimated_cost=cost,
        )
        for ordinal, (start_time, name, category, cost) in enumerate(template)
    ]


def build_fallback(start_date: date, number_of_days: int, destination: str = "") -> list[DayPlan]:
    """Deterministic placeholder plan: same inputs, same days."""
    days: list[DayPlan] = []
    for offset in range(max(number_of_days, 0)):
        day_number = offset + 1
        activities = _placeholder_activities(FALLBACK_DAY_TEMPLATE, day_number, destination)
        days.append(DayPlan(
            day=day_number,
            date=start_date + timedelta(days=offset),
            activities=activities,
            summary=_day_summary(activities),
            notes=FALLBACK_DAY_NOTES,
        ))
    return days


def build_day_fallback(
    day_number: int,
    day_date: date,
    destination: str = "",
    weather: Optional[WeatherSnapshot] = None,
) -> DayPlan:
    activities = _placeholder_activities(SINGLE_DAY_TEMPLATE, day_number, destination)
    return DayPlan(
        day=day_number,
        date=day_date,
        activities=activities,
        weather=weather,
        summary=_day_summary(activities),
        notes=SINGLE_DAY_NOTES,
    )


# ---------------------------------------------------------------------------
# Assembly helpers
# ---------------------------------------------------------------------------

def _day_summary(activities: list[Activity]) -> str:
    return DAY_SUMMARY_SEPARATOR.join(a.name for a in activities)


def _attach_weather(days: list[DayPlan], weather: list[WeatherSnapshot]) -> list[DayPlan]:
    by_date = {w.date: w for w in weather}
    return [replace(day, weather=by_date.get(day.date) or default_weather(day.date)) for day in days]


def _days_from_parse(parsed: ParsedItinerary, request: TripRequest) -> list[DayPlan]:
    return [
        DayPlan(
            day=index + 1,
            date=day_date,
            activities=parsed.day_activities[index],
            summary=_day_summary(parsed.day_activities[index]),
        )
        for index, day_date in enumerate(request.day_dates())
    ]


GeocodeFn = Callable[[str], Awaitable]
ForecastFn = Callable[..., Awaitable[Outcome]]
CompleteFn = Callable[[str, str], Awaitable[str]]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class TripPlanner:
    """Coordinates geocoding, weather, text generation and parsing.

    Providers are injectable so callers (and tests) can swap them; by default
    they are GeoAgent, WeatherAgent and litellm. The planner holds no state
    between calls, so one instance serves concurrent requests.
    """

    def __init__(
        self,
        geocode: Optional[GeocodeFn] = None,
        forecast: Optional[ForecastFn] = None,
        complete_text: Optional[CompleteFn] = None,
    ):
        self._geocode = geocode or GeoAgent.resolve_coordinates
        self._forecast = forecast or WeatherAgent.forecast
        self._complete = complete_text or complete

    @staticmethod
    def _validate_dates(request: TripRequest) -> None:
        if request.start_date >= request.end_date:
            raise InvalidDateRange("End date must be after start date")

    async def synthesize(self, request: TripRequest) -> Itinerary:
        """Run the full pipeline and return a complete itinerary."""
        self._validate_dates(request)
        dest = request.destination
        duration = request.duration()

        try:
            coordinates = await self._geocode(dest)

            weather_outcome = await self._forecast(
                coordinates.latitude, coordinates.longitude, duration, request.start_date,
            )
            if weather_outcome.degraded:
                logger.warning("Using pseudo-forecast for %s: %s", dest, weather_outcome.reason)
            weather = weather_outcome.value

            drafted = await self._draft_trip(request, duration, weather)
        except Cancelled:
            raise
        except asyncio.CancelledError as exc:
            raise Cancelled(f"Itinerary synthesis for {dest} was cancelled") from exc

        if drafted.degraded:
            logger.warning("Falling back to placeholder itinerary for %s: %s", dest, drafted.reason)
            days = build_fallback(request.start_date, duration, dest)
            provenance = Provenance.FALLBACK
            summary = f"General {duration}-day itinerary for {dest}"
            tips = FALLBACK_DAY_NOTES
        else:
            parsed = drafted.value
            days = _days_from_parse(parsed, request)
            provenance = Provenance.SYNTHESIZED
            summary, tips = parsed.summary, parsed.tips

        days = _attach_weather(days, weather)
        logger.info("Built %s itinerary for %s (%d days)", provenance.value, dest, duration)

        return Itinerary(
            destination=dest,
            coordinates=coordinates,
            start_date=request.start_date,
            end_date=request.end_date,
            duration=duration,
            days=days,
            provenance=provenance,
            summary=summary,
            tips=tips,
            preferences=request.preferences,
            map_locations=GeoAgent.build_map_locations(dest, coordinates, days),
        )

    async def _draft_trip(
        self, request: TripRequest, duration: int, weather: list[WeatherSnapshot],
    ) -> Outcome:
        """Ok(ParsedItinerary) when the text is usable, Degraded otherwise.

        RateLimited is the one provider error that is not absorbed.
        """
        prompt = build_trip_prompt(request, duration, weather)
        try:
            raw = await self._complete(prompt, _ITINERARY_SYSTEM)
        except RateLimited:
            raise
        except TextGenerationError as exc:
            return Degraded(None, str(exc))

        if not raw or not raw.strip():
            return Degraded(None, "text generation returned no text")

        parsed = parse(raw, duration, request.destination)
        threshold = _min_activities_per_day()
        if parsed.sparsest_day() < threshold:
            return Degraded(parsed, f"a parsed day has fewer than {threshold} activities")
        return Ok(parsed)

    async def regenerate_day(
        self,
        destination: str,
        day_number: int,
        day_date: date,
        preferences: Optional[TripPreferences] = None,
        weather: Optional[WeatherSnapshot] = None,
    ) -> DayPlan:
        """Redo one day. Always returns a DayPlan; only cancellation escapes."""
        preferences = preferences or TripPreferences()
        prompt = build_day_prompt(destination, day_number, day_date, preferences, weather)

        try:
            raw = await self._complete(prompt, _DAY_SYSTEM)
        except TextGenerationError as exc:
            logger.warning("Regenerating day %d for %s failed: %s", day_number, destination, exc)
            return build_day_fallback(day_number, day_date, destination, weather)
        except Cancelled:
            raise
        except asyncio.CancelledError as exc:
            raise Cancelled(f"Regenerating day {day_number} for {destination} was cancelled") from exc

        parsed = parse_day(raw, day_number, destination)
        if not parsed.activities:
            logger.warning("No activities recovered for day %d of %s", day_number, destination)
            return build_day_fallback(day_number, day_date, destination, weather)

        return DayPlan(
            day=day_number,
            date=day_date,
            activities=parsed.activities,
            weather=weather,
            summary=_day_summary(parsed.activities),
            notes=parsed.notes,
        )

    async def create_blank(self, request: TripRequest) -> Itinerary:
        """User-authored itinerary: real dates and coordinates, empty days."""
        self._validate_dates(request)
        try:
            coordinates = await self._geocode(request.destination)
        except Cancelled:
            raise
        except asyncio.CancelledError as exc:
            raise Cancelled(f"Creating itinerary for {request.destination} was cancelled") from exc

        days = [DayPlan(day=index + 1, date=day_date) for index, day_date in enumerate(request.day_dates())]
        return Itinerary(
            destination=request.destination,
            coordinates=coordinates,
            start_date=request.start_date,
            end_date=request.end_date,
            duration=request.duration(),
            days=days,
            provenance=Provenance.USER_AUTHORED,
            preferences=request.preferences,
            map_locations=GeoAgent.build_map_locations(request.destination, coordinates, days),
        )


# Singleton consumed by main.py via `from agents.planning_agent import planning_agent`
planning_agent = TripPlanner()
