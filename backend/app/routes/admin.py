"""
Admin Routes — Funnel dashboard, session listing and abandonment sweep.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.form_session import FormSession
from app.schemas.schemas import AdminDashboardResponse, AbandonmentSweepResponse
from app.services.reporting_service import ReportingService

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/dashboard", response_model=AdminDashboardResponse)
def get_dashboard(db: Session = Depends(get_db)):
    """Get aggregated funnel metrics."""
    return AdminDashboardResponse(**ReportingService.dashboard(db))


@router.post("/abandonment-sweep", response_model=AbandonmentSweepResponse)
def abandonment_sweep(threshold_minutes: Optional[int] = None, db: Session = Depends(get_db)):
    """Mark idle, unsubmitted sessions as abandoned."""
    threshold = threshold_minutes or get_settings().ABANDONMENT_THRESHOLD_MINUTES
    marked = ReportingService.mark_abandoned(db, threshold)
    return AbandonmentSweepResponse(
        marked=marked,
        count=len(marked),
        threshold_minutes=threshold,
        swept_at=datetime.utcnow(),
    )


@router.get("/sessions")
def list_sessions(
    stage: str = None,
    category: str = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    """List form sessions with optional stage / category filters."""
    query = db.query(FormSession).order_by(FormSession.created_at.desc())
    if stage:
        query = query.filter(FormSession.funnel_stage == stage)
    if category:
        query = query.filter(FormSession.lead_category == category)

    total = query.count()
    sessions = query.offset(offset).limit(limit).all()

    return {
        "total": total,
        "sessions": [
            {
                "session_id": s.session_id,
                "funnel_stage": s.funnel_stage,
                "lead_category": s.lead_category,
                "form_filler_type": s.form_filler_type,
                "is_qualified_lead": s.is_qualified_lead,
                "is_counselling_booked": s.is_counselling_booked,
                "selected_date": s.selected_date,
                "selected_slot": s.selected_slot,
                "utm_source": s.utm_source,
                "created_at": s.created_at.isoformat() if s.created_at else None,
                "updated_at": s.updated_at.isoformat() if s.updated_at else None,
            }
            for s in sessions
        ],
    }
