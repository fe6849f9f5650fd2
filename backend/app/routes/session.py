"""
Session Routes — Funnel lifecycle of a lead-capture form session.
Handles: start, section saves, page-1 classification, page 2, submit, raw upsert.
"""
from contextlib import contextmanager

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request, HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.enums import FunnelStage
from app.schemas.lead import SessionState
from app.schemas.schemas import (
    SessionStartRequest, SessionStartResponse, SectionSaveRequest, SessionUpdateResponse,
    Page1SubmitRequest, Page1SubmitResponse, CounselorInfo, SlotSelectRequest,
    ContactRequest, UpsertRequest, UpsertResponse,
)
from app.services.counselor_registry import counselor_for_category
from app.services.normalizer import SnapshotValidationError
from app.services.notification_service import ClientContext
from app.services.orchestrator import SessionOrchestrator, FunnelError, SessionNotFoundError, UTM_FIELDS
from app.services.session_store import SessionStore

router = APIRouter(prefix="/api/session", tags=["Session"])


def client_context(request: Request) -> ClientContext:
    return ClientContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent", "")[:256] or None,
        fbp=request.cookies.get("_fbp"),
        fbc=request.cookies.get("_fbc"),
        source_url=request.headers.get("referer"),
    )


def get_orchestrator(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
) -> SessionOrchestrator:
    """FastAPI dependency: orchestrator whose sinks run as background tasks."""
    return SessionOrchestrator(db, schedule=background_tasks.add_task, client=client_context(request))


@contextmanager
def funnel_errors():
    """Translate orchestrator errors into HTTP errors."""
    try:
        yield
    except SnapshotValidationError as e:
        raise HTTPException(status_code=422, detail={"message": "Validation failed", "errors": e.errors})
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except FunnelError as e:
        raise HTTPException(status_code=409, detail=str(e))


def _update_response(state: SessionState) -> SessionUpdateResponse:
    return SessionUpdateResponse(session_id=state.session_id, funnel_stage=state.funnel_stage)


@router.post("/start", response_model=SessionStartResponse)
def start_session(
    payload: SessionStartRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Open a form session and capture attribution."""
    utm = {key: getattr(payload, key) for key in UTM_FIELDS}
    state = orchestrator.start_session(payload.session_id, utm=utm)
    return SessionStartResponse(session_id=state.session_id, funnel_stage=state.funnel_stage)


@router.get("/status", response_model=SessionState)
def get_session_status(
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Get the current merged state of a session."""
    with funnel_errors():
        return orchestrator.require_state(session_id)


@router.post("/section", response_model=SessionUpdateResponse)
def save_section(
    payload: SectionSaveRequest,
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Partial save of a page-1 section."""
    with funnel_errors():
        state = orchestrator.record_section(session_id, payload.section, payload.fields)
    return _update_response(state)


@router.post("/page1", response_model=Page1SubmitResponse)
def complete_page1(
    payload: Page1SubmitRequest,
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Validate page 1, classify the lead and route it."""
    with funnel_errors():
        state, _ = orchestrator.complete_page1(session_id, payload.fields)

    counselor = counselor_for_category(state.lead_category)
    if state.funnel_stage == FunnelStage.SUBMITTED:
        next_step = "done"
    elif counselor is not None:
        next_step = "book_counselling"
    else:
        next_step = "contact_details"

    return Page1SubmitResponse(
        session_id=state.session_id,
        lead_category=state.lead_category,
        is_qualified_lead=state.is_qualified_lead,
        funnel_stage=state.funnel_stage,
        next_step=next_step,
        counselor=CounselorInfo(**counselor.to_dict()) if counselor else None,
    )


@router.post("/page2/view", response_model=SessionUpdateResponse)
def view_page2(
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Record that page 2 was shown."""
    with funnel_errors():
        state = orchestrator.view_page2(session_id)
    return _update_response(state)


@router.post("/slot", response_model=SessionState)
def select_slot(
    payload: SlotSelectRequest,
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Book a counselling slot (qualified leads only)."""
    with funnel_errors():
        return orchestrator.select_slot(session_id, payload.selected_date, payload.selected_slot)


@router.post("/contact", response_model=SessionUpdateResponse)
def submit_contact(
    payload: ContactRequest,
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Capture parent name and email."""
    with funnel_errors():
        state = orchestrator.submit_contact(session_id, payload.model_dump())
    return _update_response(state)


@router.post("/submit", response_model=SessionState)
def submit(
    payload: ContactRequest,
    session_id: str = Header(..., alias="session-id"),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
):
    """Final submit. The CRM webhook is sent in the background."""
    with funnel_errors():
        return orchestrator.submit(session_id, payload.model_dump())


@router.post("/upsert", response_model=UpsertResponse)
def upsert_session(payload: UpsertRequest, db: Session = Depends(get_db)):
    """Raw per-field merge write. Returns the durable record id."""
    try:
        record_id = SessionStore.upsert(db, payload.session_id, payload.fields)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=[{"loc": err["loc"], "msg": err["msg"]} for err in e.errors()])
    return UpsertResponse(id=record_id)
