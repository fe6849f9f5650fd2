"""
Analytics Event Catalogue — Names of the funnel events fired for a session.
Returns base names; the environment suffix is added at dispatch time.
"""
from typing import List, Optional

from app.schemas.enums import FillerRole, LeadCategory, QUALIFIED_CATEGORIES

# Funnel checkpoints that fire progression events
PAGE_1_CONTINUE = "page_1_continue"
PAGE_2_VIEW = "page_2_view"
PAGE_2_SUBMIT = "page_2_submit"
FORM_COMPLETE = "form_complete"

PHONE_CAPTURED = "apply_phone_captured"
EMAIL_CAPTURED = "apply_email_captured"


def classification_events(
    role: FillerRole,
    is_spam: bool,
    category: LeadCategory,
    would_be_qualified: bool,
) -> List[str]:
    """Events fired once when the lead is classified.

    Students are labelled by whether they would qualify had a parent filled the form.
    """
    if role == FillerRole.PARENT:
        events = ["apply_prnt_event"]
        if is_spam:
            events.append("apply_spam_prnt")
        elif category in QUALIFIED_CATEGORIES:
            events.append("apply_qualfd_prnt")
        else:
            events.append("apply_disqualfd_prnt")
        return events

    events = ["apply_stdnt"]
    if is_spam:
        events.append("apply_spam_stdnt")
    elif would_be_qualified:
        events.append("apply_qualfd_stdnt")
    else:
        events.append("apply_disqualfd_stdnt")
    return events


def progression_events(
    checkpoint: str,
    role: Optional[FillerRole],
    category: Optional[LeadCategory],
    would_be_qualified: bool = False,
) -> List[str]:
    """Generic, category-specific and qualified-lead events for a funnel checkpoint."""
    events = [f"apply_{checkpoint}"]

    if category in QUALIFIED_CATEGORIES:
        prefix = category.value.replace("-", "_")   # lum-l1 -> lum_l1
        events.append(f"apply_{prefix}_{checkpoint}")

    if role == FillerRole.PARENT and category in QUALIFIED_CATEGORIES:
        events.append(f"apply_qualfd_prnt_{checkpoint}")
    elif role == FillerRole.STUDENT and would_be_qualified:
        events.append(f"apply_qualfd_stdnt_{checkpoint}")

    return events
