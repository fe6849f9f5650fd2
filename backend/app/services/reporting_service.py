"""
Reporting Service — Out-of-band funnel reporting.
Marks stale sessions as abandoned and aggregates dashboard metrics.
"""
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.form_session import FormSession
from app.schemas.enums import FunnelStage
from app.services.session_store import SessionStore
from app.utils.logger import get_logger

logger = get_logger(__name__)

_TERMINAL_STAGES = (FunnelStage.SUBMITTED.value, FunnelStage.ABANDONED.value)


class ReportingService:

    @staticmethod
    def mark_abandoned(db: Session, threshold_minutes: int, now: Optional[datetime] = None) -> List[str]:
        """Set funnel_stage=abandoned on unsubmitted sessions idle past the threshold.

        Returns:
            The session ids that were marked.
        """
        cutoff = (now or datetime.utcnow()) - timedelta(minutes=threshold_minutes)
        stale = db.query(FormSession.session_id).filter(
            FormSession.updated_at < cutoff,
            FormSession.funnel_stage.notin_(_TERMINAL_STAGES),
        ).all()

        marked = []
        for (session_id,) in stale:
            SessionStore.merge_write(db, session_id, {"funnel_stage": FunnelStage.ABANDONED}, monotonic_stage=False)
            marked.append(session_id)

        if marked:
            logger.info(f"Marked {len(marked)} session(s) abandoned (idle > {threshold_minutes} min)")
        return marked

    @staticmethod
    def dashboard(db: Session) -> Dict[str, Any]:
        """Aggregated funnel metrics."""
        total = db.query(func.count(FormSession.id)).scalar() or 0
        qualified = db.query(func.count(FormSession.id)).filter(
            FormSession.is_qualified_lead.is_(True)
        ).scalar() or 0
        booked = db.query(func.count(FormSession.id)).filter(
            FormSession.is_counselling_booked.is_(True)
        ).scalar() or 0
        submitted = db.query(func.count(FormSession.id)).filter(
            FormSession.funnel_stage == FunnelStage.SUBMITTED.value
        ).scalar() or 0
        abandoned = db.query(func.count(FormSession.id)).filter(
            FormSession.funnel_stage == FunnelStage.ABANDONED.value
        ).scalar() or 0

        submission_rate = (submitted / total * 100) if total > 0 else 0.0

        # Category distribution
        categories = db.query(
            FormSession.lead_category, func.count(FormSession.id)
        ).filter(
            FormSession.lead_category.isnot(None)
        ).group_by(FormSession.lead_category).all()

        # Stage distribution
        stages = db.query(
            FormSession.funnel_stage, func.count(FormSession.id)
        ).group_by(FormSession.funnel_stage).all()

        # Attribution
        sources = db.query(
            FormSession.utm_source, func.count(FormSession.id)
        ).filter(
            FormSession.utm_source.isnot(None)
        ).group_by(FormSession.utm_source).all()

        return {
            "total_sessions": total,
            "qualified_leads": qualified,
            "counselling_booked": booked,
            "submitted": submitted,
            "abandoned": abandoned,
            "submission_rate": round(submission_rate, 1),
            "category_distribution": {c: n for c, n in categories},
            "stage_distribution": {s: n for s, n in stages},
            "source_distribution": {s: n for s, n in sources},
        }
