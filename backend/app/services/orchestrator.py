"""
Session Orchestrator — Drives a form session through the funnel stages.

    01 -> 02 -> 03 -> 04 -> 05 (classify)
        drop / student        -> 10
        qualified             -> 06 -> 07 -> 08 -> 09 -> 10
        nurture (parent) / masters -> 07 -> 09 -> 10

`abandoned` is never set here; see ReportingService.mark_abandoned.
Submitted and abandoned sessions accept no further transitions.
Persistence failures degrade to a direct upsert and are never surfaced.
Sinks are handed to `schedule` and never awaited.
"""
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings, Settings
from app.schemas.enums import (
    FillerRole, FunnelStage, LeadCategory, QUALIFIED_CATEGORIES, SECTION_STAGES,
)
from app.schemas.lead import SessionState
from app.services import analytics_events as events
from app.services.counselor_registry import CounselorProfile, counselor_for_category
from app.services.lead_classifier import LeadClassifier
from app.services.normalizer import (
    SnapshotValidationError, normalize_fields, build_snapshot, is_blank, MIN_TEXT_LENGTH,
)
from app.services.notification_service import NotificationService, ClientContext
from app.services.session_store import SessionStore, merge_session_state
from app.services.slot_service import SlotService
from app.services.webhook_service import WebhookService
from app.utils.logger import get_logger
from app.utils.validators import validate_iso_date

logger = get_logger(__name__)

UTM_FIELDS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content", "utm_id")

# No stage transition leaves these
_CLOSED_STAGES = (FunnelStage.SUBMITTED, FunnelStage.ABANDONED)


class FunnelError(Exception):
    """Operation not allowed at the session's current funnel position."""


class SessionNotFoundError(LookupError):
    pass


def run_inline(func: Callable, *args, **kwargs) -> None:
    """Default scheduler: run the sink immediately."""
    func(*args, **kwargs)


class SessionOrchestrator:
    """Funnel stage machine for one request.

    Args:
        db: Database session.
        schedule: Callable taking (func, *args); FastAPI's BackgroundTasks.add_task in routes.
        client: Request-side identity forwarded to the notification sink.
        now: Clock override returning an aware datetime.
    """

    def __init__(
        self,
        db: Session,
        schedule: Optional[Callable[..., Any]] = None,
        client: Optional[ClientContext] = None,
        now: Optional[Callable[[], datetime]] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.schedule = schedule or run_inline
        self.client = client
        self.settings = settings or get_settings()
        self._clock = now
        self._last_known: Dict[str, SessionState] = {}

    # ─── Clock ───────────────────────────────────────────────────────

    def now(self) -> datetime:
        if self._clock:
            return self._clock()
        try:
            tz = ZoneInfo(self.settings.TIMEZONE)
        except ZoneInfoNotFoundError:
            tz = ZoneInfo("UTC")
        return datetime.now(tz)

    # ─── State access ────────────────────────────────────────────────

    def get_state(self, session_id: str) -> Optional[SessionState]:
        """Stored state, or the last state seen in this request if storage is unreachable."""
        try:
            state = SessionStore.get(self.db, session_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Read failed for {session_id}, using last known state: {e}")
            return self._last_known.get(session_id)
        if state:
            self._last_known[session_id] = state
        return state

    def require_state(self, session_id: str) -> SessionState:
        state = self.get_state(session_id)
        if state is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return state

    @staticmethod
    def _require_open(state: Optional[SessionState]) -> None:
        if state is not None and state.funnel_stage in _CLOSED_STAGES:
            raise FunnelError(f"Session is already {state.funnel_stage.value}")

    # ─── Persistence ─────────────────────────────────────────────────

    def _persist(self, session_id: str, fields: Dict[str, Any]) -> SessionState:
        """Merge-write, falling back to a direct upsert. Never raises on storage errors."""
        try:
            state = SessionStore.merge_write(self.db, session_id, fields)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Merge-write failed for {session_id}, using direct upsert: {e}")
            try:
                state = SessionStore.direct_upsert(self.db, session_id, fields)
            except SQLAlchemyError as e2:
                self.db.rollback()
                logger.error(f"Direct upsert failed for {session_id}, write dropped: {e2}")
                state = merge_session_state(self._last_known.get(session_id), fields, session_id=session_id)
        self._last_known[session_id] = state
        return state

    def _write(self, session_id: str, previous: Optional[SessionState], fields: Dict[str, Any], fired: List[str]) -> SessionState:
        """Persist fields plus newly fired events, then schedule their delivery."""
        already = set(previous.triggered_events) if previous else set()
        new_events = [e for e in dict.fromkeys(fired) if e not in already]
        if new_events:
            fields = {**fields, "triggered_events": new_events}

        state = self._persist(session_id, fields)
        if new_events:
            self.schedule(NotificationService.dispatch, new_events, state, self.client)
        return state

    def _enrichment_events(self, previous: Optional[SessionState], fields: Dict[str, Any]) -> List[str]:
        fired = []
        if fields.get("phone_number") and not (previous and previous.phone_number):
            fired.append(events.PHONE_CAPTURED)
        if fields.get("parent_email") and not (previous and previous.parent_email):
            fired.append(events.EMAIL_CAPTURED)
        return fired

    def _normalize(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return normalize_fields(raw or {}, default_country_code=self.settings.DEFAULT_COUNTRY_CODE)

    # ─── Stage 01-04 ─────────────────────────────────────────────────

    def start_session(self, session_id: Optional[str] = None, utm: Optional[Dict[str, Any]] = None) -> SessionState:
        """Open a session (01_form_start) with attribution captured once."""
        session_id = session_id or str(uuid.uuid4())
        fields: Dict[str, Any] = {
            "environment": self.settings.ENVIRONMENT,
            "funnel_stage": FunnelStage.FORM_START,
        }
        for key in UTM_FIELDS:
            value = (utm or {}).get(key)
            if not is_blank(value):
                fields[key] = str(value).strip()[:128]

        previous = self.get_state(session_id)
        if previous is not None:
            # Attribution is first-touch
            fields = {k: v for k, v in fields.items() if k not in UTM_FIELDS or getattr(previous, k) is None}
            fields.pop("funnel_stage", None)
        logger.info(f"Session start {session_id} (source={fields.get('utm_source')})")
        return self._write(session_id, previous, fields, [])

    def record_section(self, session_id: str, section: str, raw: Dict[str, Any]) -> SessionState:
        """Partial save of one page-1 section (02, 03 or 04)."""
        stage = SECTION_STAGES.get(section)
        if stage is None:
            raise FunnelError(f"Unknown form section '{section}'")

        fields = self._normalize(raw)
        previous = self.get_state(session_id)
        self._require_open(previous)
        fields["funnel_stage"] = stage
        return self._write(session_id, previous, fields, self._enrichment_events(previous, fields))

    # ─── Stage 05 / 06 ───────────────────────────────────────────────

    def complete_page1(self, session_id: str, raw: Dict[str, Any]) -> Tuple[SessionState, str]:
        """Validate page 1, classify once, and route the session.

        Returns:
            Tuple of (state, name of the classification rule that matched).

        Raises:
            SnapshotValidationError: page 1 is incomplete or malformed.
            FunnelError: the session was already classified or is closed.
        """
        fields = self._normalize(raw)
        previous = self.get_state(session_id)
        self._require_open(previous)
        if previous is not None and previous.lead_category is not None:
            raise FunnelError("Page 1 has already been completed")

        accumulated = previous.model_dump() if previous else {}
        accumulated.update(fields)
        snapshot = build_snapshot(accumulated, require_contact=True)

        category, rule = LeadClassifier.explain(snapshot)
        would_be_qualified = (
            snapshot.filler_role == FillerRole.STUDENT
            and LeadClassifier.classify_as_parent(snapshot) in QUALIFIED_CATEGORIES
        )
        logger.info(f"Session {session_id} classified {category.value} by rule '{rule}'")

        fired = self._enrichment_events(previous, fields)
        fired += events.classification_events(snapshot.filler_role, snapshot.is_spam_grade, category, would_be_qualified)
        fired += events.progression_events(events.PAGE_1_CONTINUE, snapshot.filler_role, category, would_be_qualified)

        fields["lead_category"] = category

        if category == LeadCategory.DROP or snapshot.filler_role == FillerRole.STUDENT:
            fired += events.progression_events(events.FORM_COMPLETE, snapshot.filler_role, category, would_be_qualified)
            fields["funnel_stage"] = FunnelStage.SUBMITTED
            state = self._write(session_id, previous, fields, fired)
            self.schedule(WebhookService.deliver, state)
            return state, rule

        fields["funnel_stage"] = FunnelStage.PAGE1_COMPLETE
        state = self._write(session_id, previous, fields, fired)

        counselor = counselor_for_category(category)
        if counselor is not None:
            state = self._write(session_id, state, {
                "funnel_stage": FunnelStage.LEAD_EVALUATED,
                "counselor_id": counselor.id,
            }, [])
        return state, rule

    # ─── Stage 07-10 ─────────────────────────────────────────────────

    def _require_page2(self, session_id: str) -> SessionState:
        state = self.require_state(session_id)
        self._require_open(state)
        if state.lead_category is None:
            raise FunnelError("Page 1 has not been completed")
        if state.lead_category == LeadCategory.DROP or state.form_filler_type == FillerRole.STUDENT:
            raise FunnelError("This session does not continue to page 2")
        return state

    def _progression(self, state: SessionState, checkpoint: str) -> List[str]:
        return events.progression_events(checkpoint, state.form_filler_type, state.lead_category)

    def view_page2(self, session_id: str) -> SessionState:
        state = self._require_page2(session_id)
        return self._write(session_id, state, {
            "funnel_stage": FunnelStage.PAGE2_VIEW,
            "page_completed": 2,
        }, self._progression(state, events.PAGE_2_VIEW))

    def _require_counselor(self, state: SessionState) -> CounselorProfile:
        counselor = counselor_for_category(state.lead_category)
        if counselor is None:
            raise FunnelError(f"No counselling booking for category '{state.lead_category.value}'")
        return counselor

    def offerable_slots_for(self, session_id: str) -> Tuple[CounselorProfile, Dict[str, List[str]]]:
        """Counselor and {ISO date: [slot labels]} over the lookahead window."""
        state = self._require_page2(session_id)
        counselor = self._require_counselor(state)
        return counselor, self.offerable_calendar(counselor)

    def offerable_calendar(self, counselor: CounselorProfile) -> Dict[str, List[str]]:
        now = self.now()
        calendar = {}
        for day in SlotService.bookable_dates(now.date(), self.settings.SLOT_LOOKAHEAD_DAYS):
            slots = SlotService.offerable_slots(
                counselor, day, now,
                lookahead_days=self.settings.SLOT_LOOKAHEAD_DAYS,
                min_lead_hours=self.settings.SLOT_MIN_LEAD_HOURS,
            )
            calendar[day.isoformat()] = [s.label for s in slots]
        return calendar

    def select_slot(self, session_id: str, selected_date: str, selected_slot: str) -> SessionState:
        """Book a counselling slot (08). Qualified sessions only."""
        state = self._require_page2(session_id)
        counselor = self._require_counselor(state)

        if not validate_iso_date(selected_date):
            raise SnapshotValidationError({"selected_date": "Please select a date"})
        try:
            day = date.fromisoformat(selected_date.strip())
        except ValueError:
            raise SnapshotValidationError({"selected_date": "Please select a date"})

        if not SlotService.is_offerable(
            counselor, day, selected_slot, self.now(),
            lookahead_days=self.settings.SLOT_LOOKAHEAD_DAYS,
            min_lead_hours=self.settings.SLOT_MIN_LEAD_HOURS,
        ):
            raise SnapshotValidationError({"selected_slot": "This time slot is not available"})

        return self._write(session_id, state, {
            "selected_date": day.isoformat(),
            "selected_slot": selected_slot.strip().upper(),
            "funnel_stage": FunnelStage.SLOT_SELECTED,
        }, [])

    def _contact_fields(self, state: SessionState, raw: Dict[str, Any]) -> Dict[str, Any]:
        fields = self._normalize({
            "parent_name": (raw or {}).get("parent_name"),
            "parent_email": (raw or {}).get("parent_email"),
        })
        errors = {}
        name = fields.get("parent_name") or state.parent_name
        if is_blank(name) or len(name) < MIN_TEXT_LENGTH:
            errors["parent_name"] = "Please answer this question"
        if is_blank(fields.get("parent_email") or state.parent_email):
            errors["parent_email"] = "Please enter a valid email address"
        if errors:
            raise SnapshotValidationError(errors)
        return fields

    def submit_contact(self, session_id: str, raw: Dict[str, Any]) -> SessionState:
        """Capture the parent's name and email (09)."""
        state = self._require_page2(session_id)
        fields = self._contact_fields(state, raw)
        fields["funnel_stage"] = FunnelStage.CONTACT_FILLED
        return self._write(session_id, state, fields, self._enrichment_events(state, fields))

    def submit(self, session_id: str, raw: Optional[Dict[str, Any]] = None) -> SessionState:
        """Final submit (10). Sends the webhook with the final snapshot."""
        state = self._require_page2(session_id)
        fields = self._contact_fields(state, raw or {})

        if state.lead_category in QUALIFIED_CATEGORIES:
            errors = {}
            if not state.selected_date:
                errors["selected_date"] = "Please select a date"
            if not state.selected_slot:
                errors["selected_slot"] = "Please select a time slot"
            if errors:
                raise SnapshotValidationError(errors)

        fired = self._enrichment_events(state, fields)
        fired += self._progression(state, events.PAGE_2_SUBMIT)
        fired += self._progression(state, events.FORM_COMPLETE)
        fields["funnel_stage"] = FunnelStage.SUBMITTED

        final = self._write(session_id, state, fields, fired)
        logger.info(f"Session {session_id} submitted ({final.lead_category.value})")
        self.schedule(WebhookService.deliver, final)
        return final
