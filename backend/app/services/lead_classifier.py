"""
Lead Classifier — Assigns a lead category from an applicant snapshot.
Ordered decision list: the first matching rule wins and evaluation stops.
"""
from typing import Tuple

from app.schemas.enums import (
    FillerRole, GradeLevel, ScholarshipNeed, Geography, LeadCategory,
)
from app.schemas.lead import ApplicantSnapshot

_JUNIOR_GRADES = (GradeLevel.GRADE_8, GradeLevel.GRADE_9, GradeLevel.GRADE_10)
_SENIOR_GRADES = (GradeLevel.GRADE_11, GradeLevel.GRADE_12)
_GATED_GRADES = (GradeLevel.GRADE_8, GradeLevel.GRADE_9)


class LeadClassifier:
    """Pure, total, deterministic lead categorization."""

    @staticmethod
    def classify(snapshot: ApplicantSnapshot) -> LeadCategory:
        """Return the lead category for a snapshot. Never raises."""
        category, _ = LeadClassifier.explain(snapshot)
        return category

    @staticmethod
    def classify_as_parent(snapshot: ApplicantSnapshot) -> LeadCategory:
        """Classify as if a parent had filled the form.

        Used to label student submissions as would-be qualified for analytics;
        never used for routing.
        """
        return LeadClassifier.classify(snapshot.as_parent())

    @staticmethod
    def explain(snapshot: ApplicantSnapshot) -> Tuple[LeadCategory, str]:
        """Evaluate the decision list.

        Returns:
            Tuple of (category, name of the rule that matched).
        """
        s = snapshot
        geos = s.target_geographies
        grade = s.grade_level
        need = s.scholarship_need

        # Rule 1: Global overrides
        if s.filler_role == FillerRole.STUDENT:
            return LeadCategory.NURTURE, "student_filler"
        if s.is_spam_grade:
            return LeadCategory.NURTURE, "spam_grade"
        if need == ScholarshipNeed.FULL:
            return LeadCategory.NURTURE, "full_scholarship"
        if grade == GradeLevel.GRADE_7_BELOW:
            return LeadCategory.DROP, "grade_7_below"
        if grade == GradeLevel.MASTERS:
            return LeadCategory.MASTERS, "masters"
        if geos == frozenset({Geography.REST_OF_WORLD}):
            return LeadCategory.NURTURE, "rest_of_world_only"

        # Rule 2: Indian curriculum. Matched before the destination gate, so the
        # gate only ever decides grade 8-9 leads on international curricula
        if s.is_indian_curriculum:
            if grade in _JUNIOR_GRADES and need == ScholarshipNeed.PARTIAL:
                return LeadCategory.NURTURE, "indian_junior_partial"
            if grade in _JUNIOR_GRADES and need == ScholarshipNeed.NONE_NEEDED:
                return LeadCategory.BCH, "indian_junior"
            if grade in _SENIOR_GRADES:
                return LeadCategory.BCH, "indian_senior"

        # Rule 3: Destination gate for grades 8-9, ahead of the BCH rule below
        if grade in _GATED_GRADES and Geography.US not in geos and Geography.NEED_GUIDANCE not in geos:
            return LeadCategory.NURTURE, "destination_gate"

        # Rule 4: International curriculum
        if not s.is_indian_curriculum:
            wants_us = Geography.US in geos
            if grade in _JUNIOR_GRADES:
                return LeadCategory.BCH, "intl_junior"
            if grade == GradeLevel.GRADE_11:
                if wants_us:
                    return LeadCategory.BCH, "intl_grade11_us"
                if need == ScholarshipNeed.NONE_NEEDED:
                    return LeadCategory.LUM_L1, "intl_grade11_no_us"
                if need == ScholarshipNeed.PARTIAL:
                    return LeadCategory.LUM_L2, "intl_grade11_no_us_partial"
            if grade == GradeLevel.GRADE_12:
                if need == ScholarshipNeed.NONE_NEEDED:
                    return LeadCategory.LUM_L1, "intl_grade12"
                if need == ScholarshipNeed.PARTIAL:
                    return LeadCategory.LUM_L2, "intl_grade12_partial"

        # Rule 5: Default
        return LeadCategory.NURTURE, "default"
