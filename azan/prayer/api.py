"""
Prayer-time API. Mounted at /api/prayer/.
"""
from datetime import date, datetime
from typing import Any, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from azan.prayer.orchestrator import RefreshOutcome


class PrayerDayResponse(BaseModel):
    """Pydantic view of a cached day; serializes from PrayerDay attributes."""

    model_config = ConfigDict(from_attributes=True)

    date: date
    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str
    calculation_method: str
    last_updated: Optional[datetime] = None


class RefreshResponse(BaseModel):
    status: str
    count: int = 0
    kind: Optional[str] = None
    message: str = ""


class StalenessResponse(BaseModel):
    should_refresh: bool
    count: int
    oldest_date: Optional[date] = None
    newest_date: Optional[date] = None


class LocationRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    country: Optional[str] = None


class ScheduleResponse(BaseModel):
    scheduled: bool
    created: bool = False


def _refresh_response(outcome: RefreshOutcome) -> RefreshResponse:
    return RefreshResponse(status=outcome.status, count=outcome.count, kind=outcome.kind, message=outcome.message)


def get_router(azan_app: Any) -> APIRouter:
    """Return router for prayer times; mounted with prefix /api/prayer."""
    router = APIRouter(tags=["Prayer Times"])

    @router.get("/today", response_model=PrayerDayResponse)
    def get_today() -> PrayerDayResponse:
        record = azan_app.get_today_record()
        if record is None:
            raise HTTPException(status_code=404, detail="No prayer times for today")
        return PrayerDayResponse.model_validate(record)

    @router.get("/records", response_model=List[PrayerDayResponse])
    def get_records() -> List[PrayerDayResponse]:
        return [PrayerDayResponse.model_validate(r) for r in azan_app.get_all_records()]

    @router.get("/records/{day}", response_model=PrayerDayResponse)
    def get_record(day: date) -> PrayerDayResponse:
        record = azan_app.store.get_for_date(day)
        if record is None:
            raise HTTPException(status_code=404, detail=f"No prayer times for {day}")
        return PrayerDayResponse.model_validate(record)

    @router.get("/staleness", response_model=StalenessResponse)
    def get_staleness() -> StalenessResponse:
        store = azan_app.store
        return StalenessResponse(
            should_refresh=azan_app.should_refresh(),
            count=store.count(),
            oldest_date=store.oldest_date(),
            newest_date=store.newest_date(),
        )

    @router.post("/refresh", response_model=RefreshResponse)
    def refresh(force: bool = False) -> RefreshResponse:
        return _refresh_response(azan_app.refresh(force=force))

    @router.put("/location", response_model=RefreshResponse)
    def set_location(body: LocationRequest) -> RefreshResponse:
        return _refresh_response(azan_app.set_location(body.latitude, body.longitude, body.country))

    @router.get("/countries", response_model=List[str])
    def get_countries() -> List[str]:
        return azan_app.resolver.available_countries()

    @router.post("/schedule", response_model=ScheduleResponse)
    def schedule(replace: bool = False) -> ScheduleResponse:
        created = azan_app.schedule_periodic_refresh(replace=replace)
        return ScheduleResponse(scheduled=True, created=created)

    @router.delete("/schedule", response_model=ScheduleResponse)
    def cancel_schedule() -> ScheduleResponse:
        azan_app.cancel_periodic_refresh()
        return ScheduleResponse(scheduled=False)

    return router
