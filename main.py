"""FastAPI surface for the itinerary synthesis pipeline"""
import logging
import os

# Load .env before anything else
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import date

from TripRequest import BudgetTier, TripPreferences, TripRequest
from agents.planning_agent import _llm_name, planning_agent
from errors import RateLimited, TripPlannerError, TripTooLong
from itinerary_models import WeatherSnapshot

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Itinerary Synthesis API",
    description="Day-by-day trip itineraries from free-text plans, with weather and map data",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _max_trip_days() -> int:
    return int(os.getenv("MAX_TRIP_DAYS", "30"))


# Pydantic models
class PreferencesIn(BaseModel):
    budget: BudgetTier = "medium"
    travel_style: str = "comfort"
    number_of_travelers: int = Field(1, ge=1)
    interests: List[str] = []

    def to_preferences(self) -> TripPreferences:
        return TripPreferences(
            budget=self.budget,
            travel_style=self.travel_style,
            number_of_travelers=self.number_of_travelers,
            interests=list(self.interests),
        )

class TripCreate(BaseModel):
    destination: str
    start_date: date
    end_date: date
    preferences: PreferencesIn = PreferencesIn()

    def to_request(self) -> TripRequest:
        return TripRequest(
            destination=self.destination,
            start_date=self.start_date,
            end_date=self.end_date,
            preferences=self.preferences.to_preferences(),
        )

class RegenerateDayRequest(BaseModel):
    destination: str
    day_number: int
    date: date
    preferences: PreferencesIn = PreferencesIn()
    weather: Optional[Dict[str, Any]] = None


@app.exception_handler(TripPlannerError)
async def trip_planner_error_handler(request: Request, exc: TripPlannerError):
    headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimited) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": {"code": exc.code, "message": str(exc)}},
        headers=headers,
    )


def _check_span(trip: TripCreate) -> None:
    span = (trip.end_date - trip.start_date).days
    if span > _max_trip_days():
        raise TripTooLong(f"Trips are limited to {_max_trip_days()} days (requested {span})")


@app.post("/itineraries/generate")
async def generate_itinerary(trip: TripCreate):
    """Synthesize a full itinerary; falls back to a generic plan when the AI text is unusable."""
    _check_span(trip)
    itinerary = await planning_agent.synthesize(trip.to_request())
    return {
        "success": True,
        "message": "Itinerary generated successfully",
        "itinerary": itinerary.to_dict(),
    }


@app.post("/itineraries")
async def create_itinerary(trip: TripCreate):
    """Blank, user-authored itinerary with one empty day per trip day."""
    _check_span(trip)
    itinerary = await planning_agent.create_blank(trip.to_request())
    return {
        "success": True,
        "message": "Itinerary created successfully",
        "itinerary": itinerary.to_dict(),
    }


@app.post("/itineraries/regenerate-day")
async def regenerate_day(body: RegenerateDayRequest):
    if body.day_number < 1:
        raise HTTPException(status_code=400, detail="day_number must be 1 or greater")
    weather = None
    if body.weather:
        try:
            weather = WeatherSnapshot.from_dict({"date": body.date.isoformat(), **body.weather})
        except (KeyError, TypeError, ValueError) as e:
            raise HTTPException(status_code=400, detail=f"Invalid weather snapshot: {e}")

    day = await planning_agent.regenerate_day(
        body.destination,
        body.day_number,
        body.date,
        body.preferences.to_preferences(),
        weather,
    )
    return {"success": True, "day": day.to_dict()}


# Health check
@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "version": "1.0.0",
        "llm": _llm_name(),
        "llm_provider": os.getenv("LLM_PROVIDER", "openai"),
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
