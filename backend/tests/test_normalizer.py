"""
Tests for form field normalization and snapshot construction.
"""

import pytest

from app.schemas.enums import FillerRole, Geography, GradingScale, GradeLevel
from app.services.normalizer import (
    SnapshotValidationError, normalize_fields, build_snapshot, parse_grade_value, is_blank,
)


class TestPhoneComposition:

    def test_default_country_code_applied(self):
        fields = normalize_fields({"phone_number": "98765 43210"})
        assert fields["phone_number"] == "+919876543210"

    def test_explicit_country_code(self):
        fields = normalize_fields({"phone_number": "2025550123", "country_code": "1"})
        assert fields["phone_number"] == "+12025550123"

    def test_configured_default_country_code(self):
        fields = normalize_fields({"phone_number": "7911123456"}, default_country_code="+44")
        assert fields["phone_number"] == "+447911123456"

    def test_already_composed_number_kept(self):
        fields = normalize_fields({"phone_number": "+91 98765 43210"})
        assert fields["phone_number"] == "+919876543210"

    def test_short_number_rejected(self):
        with pytest.raises(SnapshotValidationError) as exc:
            normalize_fields({"phone_number": "12345"})
        assert "phone_number" in exc.value.errors


class TestGradeValues:

    def test_gpa_maximum_is_spam(self):
        assert parse_grade_value("10", GradingScale.GPA) == (10.0, True)

    def test_percentage_maximum_is_spam(self):
        assert parse_grade_value("100", GradingScale.PERCENTAGE) == (100.0, True)

    def test_regular_value_is_not_spam(self):
        assert parse_grade_value(" 9.2 ", GradingScale.GPA) == (9.2, False)

    @pytest.mark.parametrize("value", ["abc", "-1", "10.5", "nan"])
    def test_invalid_gpa_rejected(self, value):
        with pytest.raises(ValueError):
            parse_grade_value(value, GradingScale.GPA)

    def test_value_read_from_matching_scale(self):
        """With percentage declared, a spam-looking GPA field is ignored."""
        snapshot = build_snapshot({
            "form_filler_type": "parent",
            "current_grade": "11",
            "curriculum_type": "IB",
            "grade_format": "percentage",
            "gpa_value": "10",
            "percentage_value": "91",
            "scholarship_requirement": "partial_scholarship",
            "target_geographies": ["US"],
        })
        assert snapshot.grading_value == 91.0
        assert snapshot.is_spam_grade is False


class TestNormalizeFields:

    def test_blank_values_are_absent(self):
        fields = normalize_fields({
            "student_name": "   ",
            "school_name": "",
            "target_geographies": [],
            "current_grade": None,
        })
        assert fields == {}

    def test_enums_parsed(self):
        fields = normalize_fields({
            "form_filler_type": "parent",
            "current_grade": "9",
            "target_geographies": ["UK", "US", "UK"],
        })
        assert fields["form_filler_type"] == FillerRole.PARENT
        assert fields["current_grade"] == GradeLevel.GRADE_9
        assert fields["target_geographies"] == [Geography.UK, Geography.US]

    def test_unknown_enum_value_rejected(self):
        with pytest.raises(SnapshotValidationError) as exc:
            normalize_fields({"curriculum_type": "AP", "current_grade": "13"})
        assert set(exc.value.errors) == {"curriculum_type", "current_grade"}

    def test_email_lowercased(self):
        fields = normalize_fields({"parent_email": " Priya.Rao@Example.COM "})
        assert fields["parent_email"] == "priya.rao@example.com"

    def test_invalid_email_rejected(self):
        with pytest.raises(SnapshotValidationError) as exc:
            normalize_fields({"parent_email": "not-an-email"})
        assert "parent_email" in exc.value.errors

    def test_is_blank(self):
        assert is_blank(None) and is_blank(" ") and is_blank([])
        assert not is_blank("x") and not is_blank(0)


class TestBuildSnapshot:

    def test_missing_fields_reported_together(self):
        with pytest.raises(SnapshotValidationError) as exc:
            build_snapshot({"form_filler_type": "parent", "grade_format": "gpa"})
        errors = exc.value.errors
        for field in ("current_grade", "curriculum_type", "scholarship_requirement",
                      "target_geographies", "gpa_value"):
            assert field in errors

    def test_contact_fields_required_for_page1(self, page1_fields):
        page1_fields.pop("school_name")
        page1_fields["location"] = "X"
        with pytest.raises(SnapshotValidationError) as exc:
            build_snapshot(normalize_fields(page1_fields), require_contact=True)
        assert set(exc.value.errors) == {"school_name", "location"}

    def test_complete_page1(self, page1_fields):
        snapshot = build_snapshot(normalize_fields(page1_fields), require_contact=True)
        assert snapshot.phone_number == "+919876543210"
        assert snapshot.target_geographies == frozenset({Geography.US, Geography.UK})
        assert snapshot.grading_value == 8.6
