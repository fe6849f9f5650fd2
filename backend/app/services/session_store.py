"""
Session Store — Merge-on-write persistence for form sessions.

Every write is a per-field merge over the stored record: an absent or null
incoming field never overwrites a stored value. Writes may arrive duplicated
or out of order; the merge is idempotent so no locking is needed.
"""
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.form_session import FormSession
from app.schemas.enums import LeadCategory, QUALIFIED_CATEGORIES
from app.schemas.lead import SessionPatch, SessionState, MERGED_FIELDS
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Columns owned by the database, never written from a state dump
_DB_MANAGED = {"id", "created_at", "updated_at"}


def _as_patch(fields: SessionPatch | Dict[str, Any]) -> SessionPatch:
    if isinstance(fields, SessionPatch):
        return fields
    return SessionPatch.model_validate(fields)


def _recompute_flags(state: Dict[str, Any]) -> None:
    category = state.get("lead_category")
    state["is_qualified_lead"] = category is not None and LeadCategory(category) in QUALIFIED_CATEGORIES
    state["is_counselling_booked"] = bool(state.get("selected_date") and state.get("selected_slot"))


def merge_session_state(
    existing: Optional[SessionState],
    incoming: SessionPatch | Dict[str, Any],
    session_id: Optional[str] = None,
    monotonic_stage: bool = False,
) -> SessionState:
    """Pure merge of a partial write over the current state.

    - Plain fields: incoming wins when not None.
    - funnel_stage: incoming wins when not None; with `monotonic_stage`, only
      if it ranks at or above the stored stage.
    - triggered_events: ordered set union.
    - is_qualified_lead / is_counselling_booked: recomputed from the result.

    A missing `existing` starts from defaults (first write for a session).
    """
    patch = _as_patch(incoming)
    if existing is None:
        if not session_id:
            raise ValueError("session_id is required for the first write")
        existing = SessionState(session_id=session_id)

    merged = existing.model_dump()

    for name in MERGED_FIELDS:
        value = getattr(patch, name)
        if value is not None:
            merged[name] = value

    if patch.funnel_stage is not None:
        if not (monotonic_stage and existing.funnel_stage.rank > patch.funnel_stage.rank):
            merged["funnel_stage"] = patch.funnel_stage

    events = list(existing.triggered_events)
    for event in patch.triggered_events or []:
        if event not in events:
            events.append(event)
    merged["triggered_events"] = events

    _recompute_flags(merged)
    return SessionState(**merged)


def _to_state(row: FormSession) -> SessionState:
    # NULL columns fall back to the state defaults
    data = {c.name: getattr(row, c.name) for c in FormSession.__table__.columns}
    return SessionState.model_validate({k: v for k, v in data.items() if v is not None})


def _apply(row: FormSession, state: SessionState) -> None:
    for name, value in state.model_dump(mode="json", exclude=_DB_MANAGED).items():
        setattr(row, name, value)


def _find(db: Session, session_id: str) -> Optional[FormSession]:
    return db.query(FormSession).filter(FormSession.session_id == session_id).first()


class SessionStore:
    """Durable SessionState keyed by session_id."""

    @staticmethod
    def get(db: Session, session_id: str) -> Optional[SessionState]:
        row = _find(db, session_id)
        return _to_state(row) if row else None

    @staticmethod
    def merge_write(
        db: Session,
        session_id: str,
        fields: SessionPatch | Dict[str, Any],
        monotonic_stage: Optional[bool] = None,
    ) -> SessionState:
        """Merge a partial write into the stored record, creating it on first write.

        Idempotent: replaying the same write leaves the record unchanged.
        """
        if monotonic_stage is None:
            monotonic_stage = get_settings().FUNNEL_STAGE_MONOTONIC
        patch = _as_patch(fields)

        row = _find(db, session_id)
        merged = merge_session_state(
            _to_state(row) if row else None, patch,
            session_id=session_id, monotonic_stage=monotonic_stage,
        )
        if row is None:
            row = FormSession(session_id=session_id)
            db.add(row)
        _apply(row, merged)

        try:
            db.commit()
        except IntegrityError:
            # Lost the first-insert race; merge onto the row that won
            db.rollback()
            row = _find(db, session_id)
            if row is None:
                raise
            logger.info("Insert race on session %s, retrying as update", session_id)
            merged = merge_session_state(_to_state(row), patch, monotonic_stage=monotonic_stage)
            _apply(row, merged)
            db.commit()

        db.refresh(row)
        return _to_state(row)

    @staticmethod
    def upsert(db: Session, session_id: str, fields: SessionPatch | Dict[str, Any]) -> str:
        """Upsert RPC contract: merge-write and return the record id."""
        return SessionStore.merge_write(db, session_id, fields).id

    @staticmethod
    def direct_upsert(db: Session, session_id: str, fields: SessionPatch | Dict[str, Any]) -> SessionState:
        """Best-effort, non-merging write: every supplied key overwrites verbatim.

        Derived flags are still recomputed from the resulting record.
        """
        patch = _as_patch(fields)
        supplied = patch.model_dump(mode="json", exclude_unset=True)

        row = _find(db, session_id)
        if row is None:
            row = FormSession(session_id=session_id)
            db.add(row)
        for name, value in supplied.items():
            setattr(row, name, value)

        state = {
            "lead_category": row.lead_category,
            "selected_date": row.selected_date,
            "selected_slot": row.selected_slot,
        }
        _recompute_flags(state)
        row.is_qualified_lead = state["is_qualified_lead"]
        row.is_counselling_booked = state["is_counselling_booked"]

        db.commit()
        db.refresh(row)
        return _to_state(row)
