"""
Error taxonomy for the itinerary pipeline.

Errors that make a trip impossible to plan (bad dates, no coordinates,
provider backpressure) propagate to the caller. Errors that only make the
plan less rich are absorbed by the planner and never reach this layer.
"""
from __future__ import annotations

import asyncio
from typing import Optional


class TripPlannerError(Exception):
    """Base class. Carries the HTTP status and a machine-readable code."""

    status_code = 500
    code = "TRIP_PLANNER_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code


class InvalidDateRange(TripPlannerError):
    status_code = 400
    code = "INVALID_DATE_RANGE"


class TripTooLong(TripPlannerError):
    status_code = 400
    code = "TRIP_TOO_LONG"


class GeocodingFailed(TripPlannerError):
    status_code = 502
    code = "GEOCODING_FAILED"


# ---------------------------------------------------------------------------
# Text-generation provider failures
# ---------------------------------------------------------------------------

class TextGenerationError(TripPlannerError):
    status_code = 502
    code = "AI_SERVICE_ERROR"


class Unauthorized(TextGenerationError):
    code = "AI_AUTH_ERROR"


class GenerationTimeout(TextGenerationError):
    status_code = 504
    code = "AI_TIMEOUT"


class MalformedResponse(TextGenerationError):
    code = "AI_MALFORMED_RESPONSE"


class RateLimited(TextGenerationError):
    """Provider backpressure. Surfaced to the caller, never degraded."""

    status_code = 429
    code = "RATE_LIMIT_ERROR"

    def __init__(self, message: str, *, retry_after: int = 30):
        super().__init__(message)
        self.retry_after = retry_after


class Cancelled(asyncio.CancelledError):
    """Caller aborted the request; no partial itinerary is produced."""

    code = "CANCELLED"
