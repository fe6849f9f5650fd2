"""
Lead Routes — Stateless classification of a page-1 snapshot.
"""
from fastapi import APIRouter, HTTPException

from app.config import get_settings
from app.schemas.schemas import ClassifyRequest, ClassifyResponse, CounselorInfo
from app.services.counselor_registry import counselor_for_category
from app.services.lead_classifier import LeadClassifier
from app.services.normalizer import SnapshotValidationError, normalize_fields, build_snapshot

router = APIRouter(prefix="/api/leads", tags=["Leads"])


@router.post("/classify", response_model=ClassifyResponse)
def classify_lead(payload: ClassifyRequest):
    """Run the categorization rules on the given fields. Nothing is stored."""
    try:
        fields = normalize_fields(payload.fields, default_country_code=get_settings().DEFAULT_COUNTRY_CODE)
        snapshot = build_snapshot(fields)
    except SnapshotValidationError as e:
        raise HTTPException(status_code=422, detail={"message": "Validation failed", "errors": e.errors})

    category, rule = LeadClassifier.explain(snapshot)
    counselor = counselor_for_category(category)
    return ClassifyResponse(
        lead_category=category,
        is_qualified_lead=category.is_qualified,
        rule=rule,
        is_spam_grade=snapshot.is_spam_grade,
        counselor=CounselorInfo(**counselor.to_dict()) if counselor else None,
    )
