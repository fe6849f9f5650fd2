"""
Slot Routes — Bookable counselling slots over the lookahead window.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from app.schemas.schemas import SlotCalendarResponse, CounselorInfo
from app.services.counselor_registry import COUNSELORS, get_counselor
from app.services.orchestrator import SessionOrchestrator
from app.routes.session import get_orchestrator, funnel_errors

router = APIRouter(prefix="/api/slots", tags=["Slots"])


@router.get("/counselors", response_model=list[CounselorInfo])
def list_counselors():
    """All counselors and the categories they handle."""
    return [CounselorInfo(**c.to_dict()) for c in COUNSELORS.values()]


@router.get("/session", response_model=SlotCalendarResponse)
def get_session_slots(
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Slots offered to a qualified session, from its assigned counselor."""
    with funnel_errors():
        counselor, days = orchestrator.offerable_slots_for(session_id)
    return SlotCalendarResponse(
        counselor=CounselorInfo(**counselor.to_dict()),
        timezone=orchestrator.settings.TIMEZONE,
        days=days,
    )


@router.get("/{counselor_id}", response_model=SlotCalendarResponse)
def get_counselor_slots(
    counselor_id: str,
    day: Optional[date] = Query(None, alias="date", description="Restrict to one date (YYYY-MM-DD)"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Offerable slots for a counselor over the window, or for one date."""
    counselor = get_counselor(counselor_id)
    if counselor is None:
        raise HTTPException(status_code=404, detail="Counselor not found")

    days = orchestrator.offerable_calendar(counselor)
    if day is not None:
        days = {day.isoformat(): days.get(day.isoformat(), [])}

    return SlotCalendarResponse(
        counselor=CounselorInfo(**counselor.to_dict()),
        timezone=orchestrator.settings.TIMEZONE,
        days=days,
    )
