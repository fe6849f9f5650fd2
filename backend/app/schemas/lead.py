"""
Lead Domain Models — Applicant snapshot, session state, and partial writes.
"""
from datetime import datetime
from typing import Optional, List, FrozenSet

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.enums import (
    FillerRole, GradeLevel, Curriculum, GradingScale, ScholarshipNeed,
    Geography, LeadCategory, FunnelStage, INDIAN_CURRICULA,
)


class ApplicantSnapshot(BaseModel):
    """Everything known about an applicant at classification time. Immutable."""

    model_config = ConfigDict(frozen=True)

    filler_role: FillerRole
    grade_level: GradeLevel
    curriculum: Curriculum
    grading_scale: GradingScale
    grading_value: float
    is_spam_grade: bool = False
    scholarship_need: ScholarshipNeed
    target_geographies: FrozenSet[Geography] = Field(..., min_length=1)

    student_name: Optional[str] = None
    parent_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    school_name: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_indian_curriculum(self) -> bool:
        return self.curriculum in INDIAN_CURRICULA

    def as_parent(self) -> "ApplicantSnapshot":
        return self.model_copy(update={"filler_role": FillerRole.PARENT})


class SessionPatch(BaseModel):
    """A partial write. Every field is optional; None means "not supplied".

    Derived flags (is_qualified_lead, is_counselling_booked) are not accepted
    here; the store recomputes them from the merged record.
    """

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_absent(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("target_geographies", mode="before")
    @classmethod
    def empty_list_is_absent(cls, value):
        if isinstance(value, (list, tuple, set, frozenset)) and len(value) == 0:
            return None
        return value

    environment: Optional[str] = None
    form_filler_type: Optional[FillerRole] = None
    student_name: Optional[str] = None
    current_grade: Optional[GradeLevel] = None
    location: Optional[str] = None
    phone_number: Optional[str] = None
    curriculum_type: Optional[Curriculum] = None
    grade_format: Optional[GradingScale] = None
    gpa_value: Optional[str] = None
    percentage_value: Optional[str] = None
    school_name: Optional[str] = None
    scholarship_requirement: Optional[ScholarshipNeed] = None
    target_geographies: Optional[List[Geography]] = None

    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    selected_date: Optional[str] = None
    selected_slot: Optional[str] = None

    lead_category: Optional[LeadCategory] = None
    counselor_id: Optional[str] = None
    funnel_stage: Optional[FunnelStage] = None
    page_completed: Optional[int] = Field(None, ge=1, le=2)
    triggered_events: Optional[List[str]] = None

    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    utm_id: Optional[str] = None


class SessionState(SessionPatch):
    """The merged, durable view of one form session."""

    session_id: str
    funnel_stage: FunnelStage = FunnelStage.FORM_START
    page_completed: int = 1
    triggered_events: List[str] = Field(default_factory=list)
    is_qualified_lead: bool = False
    is_counselling_booked: bool = False

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Fields merged with the plain "incoming non-null wins" rule
MERGED_FIELDS = tuple(
    name for name in SessionPatch.model_fields
    if name not in ("triggered_events", "funnel_stage")
)
