"""
Pydantic Schemas — Request & Response models for API validation.
"""
from datetime import datetime
from typing import Any, Optional, Dict, List
from pydantic import BaseModel, Field, EmailStr

from app.schemas.enums import LeadCategory, FunnelStage


# ──────────────── Session ────────────────

class SessionStartRequest(BaseModel):
    session_id: Optional[str] = Field(None, max_length=64, description="Client-minted session id; generated if omitted")
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    utm_id: Optional[str] = None


class SessionStartResponse(BaseModel):
    session_id: str
    funnel_stage: FunnelStage
    message: str = "Session created successfully"


class SectionSaveRequest(BaseModel):
    section: str = Field(..., description="student_info | academic_info | preferences")
    fields: Dict[str, Any] = Field(default_factory=dict, description="Raw form values for the section")


class SessionUpdateResponse(BaseModel):
    success: bool = True
    session_id: str
    funnel_stage: FunnelStage


# ──────────────── Page 1 / Classification ────────────────

class Page1SubmitRequest(BaseModel):
    fields: Dict[str, Any] = Field(default_factory=dict, description="Raw page-1 form values")


class CounselorInfo(BaseModel):
    id: str
    name: str
    profile_url: str
    categories: List[str] = []


class Page1SubmitResponse(BaseModel):
    session_id: str
    lead_category: LeadCategory
    is_qualified_lead: bool
    funnel_stage: FunnelStage
    next_step: str      # book_counselling | contact_details | done
    counselor: Optional[CounselorInfo] = None


class ClassifyRequest(BaseModel):
    fields: Dict[str, Any] = Field(..., description="Page-1 values to classify")


class ClassifyResponse(BaseModel):
    lead_category: LeadCategory
    is_qualified_lead: bool
    rule: str
    is_spam_grade: bool
    counselor: Optional[CounselorInfo] = None


# ──────────────── Page 2 ────────────────

class SlotSelectRequest(BaseModel):
    selected_date: str = Field(..., description="YYYY-MM-DD")
    selected_slot: str = Field(..., description="Hour label, e.g. '11 AM'")


class ContactRequest(BaseModel):
    parent_name: Optional[str] = None
    parent_email: Optional[EmailStr] = None


class SlotCalendarResponse(BaseModel):
    counselor: CounselorInfo
    timezone: str
    days: Dict[str, List[str]]


# ──────────────── Upsert RPC ────────────────

class UpsertRequest(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    fields: Dict[str, Any] = Field(default_factory=dict)


class UpsertResponse(BaseModel):
    id: str


# ──────────────── Admin ────────────────

class AdminDashboardResponse(BaseModel):
    total_sessions: int
    qualified_leads: int
    counselling_booked: int
    submitted: int
    abandoned: int
    submission_rate: float
    category_distribution: Dict[str, int]
    stage_distribution: Dict[str, int]
    source_distribution: Dict[str, int]


class AbandonmentSweepResponse(BaseModel):
    marked: List[str]
    count: int
    threshold_minutes: int
    swept_at: datetime
