"""
Tests for the lead categorization rules.
"""

import pytest

from app.schemas.enums import (
    FillerRole, GradeLevel, Curriculum, GradingScale, ScholarshipNeed, Geography, LeadCategory,
)
from app.schemas.lead import ApplicantSnapshot
from app.services.lead_classifier import LeadClassifier
from app.services.normalizer import build_snapshot


def make_snapshot(**overrides) -> ApplicantSnapshot:
    fields = dict(
        filler_role=FillerRole.PARENT,
        grade_level=GradeLevel.GRADE_10,
        curriculum=Curriculum.IB,
        grading_scale=GradingScale.GPA,
        grading_value=8.0,
        scholarship_need=ScholarshipNeed.NONE_NEEDED,
        target_geographies=frozenset({Geography.US}),
    )
    fields.update(overrides)
    return ApplicantSnapshot(**fields)


class TestScenarios:
    """End-to-end classification scenarios."""

    def test_grade9_international_uk_only_is_gated_to_nurture(self):
        """Grade 9 IGCSE, no scholarship need, UK only: destination gate wins over bch."""
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_9,
            curriculum=Curriculum.IGCSE,
            target_geographies=frozenset({Geography.UK}),
        )
        category, rule = LeadClassifier.explain(snapshot)
        assert category == LeadCategory.NURTURE
        assert rule == "destination_gate"

    def test_indian_grade11_partial_is_bch(self):
        """CBSE grade 11 with partial scholarship bypasses destination rules."""
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_11,
            curriculum=Curriculum.CBSE,
            scholarship_need=ScholarshipNeed.PARTIAL,
            target_geographies=frozenset({Geography.UK}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.BCH

    def test_international_grade12_no_need_is_lum_l1(self):
        """Grade 12, Others curriculum, no scholarship need."""
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_12,
            curriculum=Curriculum.OTHERS,
            target_geographies=frozenset({Geography.UK}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.LUM_L1

    @pytest.mark.parametrize("curriculum", list(Curriculum))
    def test_student_filler_is_always_nurture(self, curriculum):
        """Student-filled forms are nurture regardless of other fields."""
        snapshot = make_snapshot(filler_role=FillerRole.STUDENT, curriculum=curriculum)
        assert LeadClassifier.classify(snapshot) == LeadCategory.NURTURE

    def test_spam_gpa_overrides_bch(self):
        """A GPA of exactly 10 is a spam signal even when the lead would be bch."""
        snapshot = build_snapshot({
            "form_filler_type": "parent",
            "current_grade": "11",
            "curriculum_type": "CBSE",
            "grade_format": "gpa",
            "gpa_value": "10",
            "scholarship_requirement": "scholarship_optional",
            "target_geographies": ["US"],
        })
        assert snapshot.is_spam_grade is True
        assert LeadClassifier.explain(snapshot) == (LeadCategory.NURTURE, "spam_grade")


class TestGlobalOverrides:
    """Rules checked before any curriculum logic, in order."""

    def test_full_scholarship_is_nurture(self):
        snapshot = make_snapshot(scholarship_need=ScholarshipNeed.FULL)
        assert LeadClassifier.classify(snapshot) == LeadCategory.NURTURE

    def test_grade_7_below_is_drop(self):
        snapshot = make_snapshot(grade_level=GradeLevel.GRADE_7_BELOW)
        assert LeadClassifier.classify(snapshot) == LeadCategory.DROP

    def test_masters_is_masters(self):
        snapshot = make_snapshot(grade_level=GradeLevel.MASTERS, curriculum=Curriculum.CBSE)
        assert LeadClassifier.classify(snapshot) == LeadCategory.MASTERS

    def test_rest_of_world_only_is_nurture(self):
        snapshot = make_snapshot(target_geographies=frozenset({Geography.REST_OF_WORLD}))
        assert LeadClassifier.classify(snapshot) == LeadCategory.NURTURE

    def test_rest_of_world_with_us_is_not_overridden(self):
        snapshot = make_snapshot(target_geographies=frozenset({Geography.REST_OF_WORLD, Geography.US}))
        assert LeadClassifier.classify(snapshot) == LeadCategory.BCH

    def test_student_beats_drop(self):
        """Earlier override wins: a student in grade 7 is nurture, not drop."""
        snapshot = make_snapshot(filler_role=FillerRole.STUDENT, grade_level=GradeLevel.GRADE_7_BELOW)
        assert LeadClassifier.classify(snapshot) == LeadCategory.NURTURE

    def test_full_scholarship_beats_masters(self):
        snapshot = make_snapshot(grade_level=GradeLevel.MASTERS, scholarship_need=ScholarshipNeed.FULL)
        assert LeadClassifier.classify(snapshot) == LeadCategory.NURTURE

    def test_drop_beats_rest_of_world(self):
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_7_BELOW,
            target_geographies=frozenset({Geography.REST_OF_WORLD}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.DROP


class TestIndianCurriculum:
    """CBSE / ICSE / State_Boards rules."""

    @pytest.mark.parametrize("grade", [GradeLevel.GRADE_8, GradeLevel.GRADE_9, GradeLevel.GRADE_10])
    def test_junior_partial_is_nurture(self, grade):
        snapshot = make_snapshot(grade_level=grade, curriculum=Curriculum.ICSE, scholarship_need=ScholarshipNeed.PARTIAL)
        assert LeadClassifier.classify(snapshot) == LeadCategory.NURTURE

    @pytest.mark.parametrize("grade", [GradeLevel.GRADE_8, GradeLevel.GRADE_9, GradeLevel.GRADE_10])
    def test_junior_no_need_is_bch(self, grade):
        snapshot = make_snapshot(grade_level=grade, curriculum=Curriculum.STATE_BOARDS)
        assert LeadClassifier.classify(snapshot) == LeadCategory.BCH

    def test_indian_rules_precede_destination_gate(self):
        """Indian grade 9 targeting only the UK matches the Indian rule first."""
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_9,
            curriculum=Curriculum.CBSE,
            target_geographies=frozenset({Geography.UK}),
        )
        assert LeadClassifier.explain(snapshot) == (LeadCategory.BCH, "indian_junior")

    @pytest.mark.parametrize("need", [ScholarshipNeed.NONE_NEEDED, ScholarshipNeed.PARTIAL])
    def test_senior_is_bch(self, need):
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_12,
            curriculum=Curriculum.CBSE,
            scholarship_need=need,
            target_geographies=frozenset({Geography.NEED_GUIDANCE}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.BCH


class TestInternationalCurriculum:
    """IB / IGCSE / Others rules."""

    def test_grade8_with_guidance_passes_gate(self):
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_8,
            curriculum=Curriculum.IGCSE,
            target_geographies=frozenset({Geography.NEED_GUIDANCE, Geography.UK}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.BCH

    def test_grade10_is_not_gated(self):
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_10,
            scholarship_need=ScholarshipNeed.PARTIAL,
            target_geographies=frozenset({Geography.UK}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.BCH

    def test_grade11_targeting_us_is_bch(self):
        snapshot = make_snapshot(grade_level=GradeLevel.GRADE_11, scholarship_need=ScholarshipNeed.PARTIAL)
        assert LeadClassifier.classify(snapshot) == LeadCategory.BCH

    def test_grade11_without_us_no_need_is_lum_l1(self):
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_11,
            target_geographies=frozenset({Geography.UK, Geography.NEED_GUIDANCE}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.LUM_L1

    def test_grade11_without_us_partial_is_lum_l2(self):
        snapshot = make_snapshot(
            grade_level=GradeLevel.GRADE_11,
            scholarship_need=ScholarshipNeed.PARTIAL,
            target_geographies=frozenset({Geography.UK}),
        )
        assert LeadClassifier.classify(snapshot) == LeadCategory.LUM_L2

    def test_grade12_partial_is_lum_l2(self):
        snapshot = make_snapshot(grade_level=GradeLevel.GRADE_12, scholarship_need=ScholarshipNeed.PARTIAL)
        assert LeadClassifier.classify(snapshot) == LeadCategory.LUM_L2


class TestProperties:
    """Totality and determinism."""

    def test_every_combination_yields_a_category(self):
        """classify returns one of the six categories for every enum combination."""
        geo_sets = [
            frozenset({Geography.US}),
            frozenset({Geography.UK}),
            frozenset({Geography.REST_OF_WORLD}),
            frozenset({Geography.NEED_GUIDANCE}),
            frozenset({Geography.UK, Geography.REST_OF_WORLD}),
        ]
        for role in FillerRole:
            for grade in GradeLevel:
                for curriculum in Curriculum:
                    for need in ScholarshipNeed:
                        for geos in geo_sets:
                            for spam in (False, True):
                                snapshot = make_snapshot(
                                    filler_role=role, grade_level=grade, curriculum=curriculum,
                                    scholarship_need=need, target_geographies=geos, is_spam_grade=spam,
                                )
                                first = LeadClassifier.classify(snapshot)
                                assert first in LeadCategory
                                assert LeadClassifier.classify(snapshot) == first

    def test_classify_as_parent_simulates_parent_filler(self):
        snapshot = make_snapshot(filler_role=FillerRole.STUDENT, grade_level=GradeLevel.GRADE_12)
        assert LeadClassifier.classify(snapshot) == LeadCategory.NURTURE
        assert LeadClassifier.classify_as_parent(snapshot) == LeadCategory.LUM_L1
        assert snapshot.filler_role == FillerRole.STUDENT
