"""
Enumerations — Wire-stable string values persisted in form_sessions.
Renaming any value requires a data migration.
"""
from enum import Enum


class FillerRole(str, Enum):
    PARENT = "parent"
    STUDENT = "student"


class GradeLevel(str, Enum):
    GRADE_7_BELOW = "7_below"
    GRADE_8 = "8"
    GRADE_9 = "9"
    GRADE_10 = "10"
    GRADE_11 = "11"
    GRADE_12 = "12"
    MASTERS = "masters"


class Curriculum(str, Enum):
    IB = "IB"
    IGCSE = "IGCSE"
    CBSE = "CBSE"
    ICSE = "ICSE"
    STATE_BOARDS = "State_Boards"
    OTHERS = "Others"


class GradingScale(str, Enum):
    GPA = "gpa"
    PERCENTAGE = "percentage"

    @property
    def maximum(self) -> float:
        return 10.0 if self is GradingScale.GPA else 100.0


class ScholarshipNeed(str, Enum):
    NONE_NEEDED = "scholarship_optional"
    PARTIAL = "partial_scholarship"
    FULL = "full_scholarship"


class Geography(str, Enum):
    US = "US"
    UK = "UK"
    REST_OF_WORLD = "Rest of World"
    NEED_GUIDANCE = "Need Guidance"


class LeadCategory(str, Enum):
    BCH = "bch"
    LUM_L1 = "lum-l1"
    LUM_L2 = "lum-l2"
    NURTURE = "nurture"
    MASTERS = "masters"
    DROP = "drop"

    @property
    def is_qualified(self) -> bool:
        return self in QUALIFIED_CATEGORIES


class FunnelStage(str, Enum):
    FORM_START = "01_form_start"
    STUDENT_INFO_FILLED = "02_student_info_filled"
    ACADEMIC_INFO_FILLED = "03_academic_info_filled"
    PREFERENCES_FILLED = "04_preferences_filled"
    PAGE1_COMPLETE = "05_page1_complete"
    LEAD_EVALUATED = "06_lead_evaluated"
    PAGE2_VIEW = "07_page2_view"
    SLOT_SELECTED = "08_slot_selected"
    CONTACT_FILLED = "09_contact_filled"
    SUBMITTED = "10_submitted"
    ABANDONED = "abandoned"

    @property
    def rank(self) -> int:
        """Position in the funnel; `abandoned` ranks above every in-form stage."""
        return _STAGE_ORDER.index(self)


_STAGE_ORDER = list(FunnelStage)

QUALIFIED_CATEGORIES = frozenset({LeadCategory.BCH, LeadCategory.LUM_L1, LeadCategory.LUM_L2})

INDIAN_CURRICULA = frozenset({Curriculum.CBSE, Curriculum.ICSE, Curriculum.STATE_BOARDS})

# Stages recorded by the section-save endpoint, keyed by form section
SECTION_STAGES = {
    "student_info": FunnelStage.STUDENT_INFO_FILLED,
    "academic_info": FunnelStage.ACADEMIC_INFO_FILLED,
    "preferences": FunnelStage.PREFERENCES_FILLED,
}
