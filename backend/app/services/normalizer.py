"""
Field Value Normalizer — Converts the loosely typed form bag into typed fields.
The only place where raw strings become enums, numbers and composed phone numbers.
"""
import math
import re
from typing import Any, Dict, List, Tuple

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.schemas.enums import (
    FillerRole, GradeLevel, Curriculum, GradingScale, ScholarshipNeed, Geography,
)
from app.schemas.lead import ApplicantSnapshot
from app.utils.validators import (
    validate_local_phone, validate_e164, compose_phone, sanitize_name,
)

ENUM_FIELDS = {
    "form_filler_type": FillerRole,
    "current_grade": GradeLevel,
    "curriculum_type": Curriculum,
    "grade_format": GradingScale,
    "scholarship_requirement": ScholarshipNeed,
}

NAME_FIELDS = ("student_name", "parent_name")
TEXT_FIELDS = ("location", "school_name")

GRADE_VALUE_FIELDS = {
    "gpa_value": GradingScale.GPA,
    "percentage_value": GradingScale.PERCENTAGE,
}

# Page-1 text fields need at least this many characters
MIN_TEXT_LENGTH = 2

_email_adapter = TypeAdapter(EmailStr)


class SnapshotValidationError(ValueError):
    """Raised when form input is malformed or incomplete. Carries a field -> message map."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


def is_blank(value: Any) -> bool:
    """Absent, whitespace-only, or an empty collection."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def parse_grade_value(value: Any, scale: GradingScale) -> Tuple[float, bool]:
    """Parse a grading value on its scale.

    Returns:
        Tuple of (numeric value, is_spam). A value equal to the scale maximum
        is a spam signal, not a legitimate score.
    """
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f"'{value}' is not a number")
    if math.isnan(number) or number < 0 or number > scale.maximum:
        raise ValueError(f"Must be between 0 and {scale.maximum:g}")
    return number, number == scale.maximum


def parse_geographies(value: Any) -> List[Geography]:
    """Parse a geography list, dropping duplicates but keeping first-seen order."""
    if isinstance(value, str):
        value = [value]
    parsed: List[Geography] = []
    for item in value:
        geo = item if isinstance(item, Geography) else Geography(str(item).strip())
        if geo not in parsed:
            parsed.append(geo)
    return parsed


def normalize_phone(phone: str, country_code: str | None, default_country_code: str) -> str:
    """Compose '+<cc><10 digits>'. A value already carrying '+' is taken as composed."""
    phone = phone.strip()
    if phone.startswith("+"):
        composed = "+" + re.sub(r"\D", "", phone)
        if not validate_e164(composed):
            raise ValueError("Please enter a valid phone number")
        return composed

    digits = re.sub(r"\D", "", phone)
    if not validate_local_phone(digits):
        raise ValueError("Please enter a valid 10-digit phone number")
    cc = country_code.strip() if not is_blank(country_code) else default_country_code
    return compose_phone(digits, cc)


def normalize_fields(raw: Dict[str, Any], default_country_code: str = "+91") -> Dict[str, Any]:
    """Lenient normalization of a partial form bag.

    Only validates the fields that are present. Blank values are dropped so
    they read as "not supplied" to the merge-on-write store.

    Raises:
        SnapshotValidationError: if any present field is malformed.
    """
    errors: Dict[str, str] = {}
    out: Dict[str, Any] = {}

    for field, enum_cls in ENUM_FIELDS.items():
        value = raw.get(field)
        if is_blank(value):
            continue
        try:
            out[field] = enum_cls(value.strip() if isinstance(value, str) else value)
        except ValueError:
            errors[field] = f"Unsupported value '{value}'"

    for field in NAME_FIELDS:
        if not is_blank(raw.get(field)):
            out[field] = sanitize_name(str(raw[field]))

    for field in TEXT_FIELDS:
        if not is_blank(raw.get(field)):
            out[field] = str(raw[field]).strip()

    geos = raw.get("target_geographies")
    if not is_blank(geos):
        try:
            out["target_geographies"] = parse_geographies(geos)
        except ValueError:
            errors["target_geographies"] = f"Unsupported value in {geos!r}"

    for field, scale in GRADE_VALUE_FIELDS.items():
        value = raw.get(field)
        if is_blank(value):
            continue
        try:
            parse_grade_value(value, scale)
            out[field] = str(value).strip()
        except ValueError as e:
            errors[field] = str(e)

    phone = raw.get("phone_number")
    if not is_blank(phone):
        try:
            out["phone_number"] = normalize_phone(str(phone), raw.get("country_code"), default_country_code)
        except ValueError as e:
            errors["phone_number"] = str(e)

    email = raw.get("parent_email")
    if not is_blank(email):
        try:
            out["parent_email"] = str(_email_adapter.validate_python(str(email).strip())).lower()
        except ValidationError:
            errors["parent_email"] = "Please enter a valid email address"

    if errors:
        raise SnapshotValidationError(errors)
    return out


def build_snapshot(fields: Dict[str, Any], require_contact: bool = False) -> ApplicantSnapshot:
    """Strictly build an ApplicantSnapshot from accumulated session fields.

    The grading value is read only from the field matching the declared scale.
    With `require_contact`, the page-1 text and phone fields must be present too.

    Raises:
        SnapshotValidationError: listing every missing or malformed field.
    """
    errors: Dict[str, str] = {}
    typed: Dict[str, Any] = {}

    for field, enum_cls in ENUM_FIELDS.items():
        value = fields.get(field)
        if is_blank(value):
            errors[field] = "Please answer this question"
            continue
        try:
            typed[field] = enum_cls(value)
        except ValueError:
            errors[field] = f"Unsupported value '{value}'"

    geos = fields.get("target_geographies")
    if is_blank(geos):
        errors["target_geographies"] = "Please answer this question"
    else:
        try:
            typed["target_geographies"] = parse_geographies(geos)
        except ValueError:
            errors["target_geographies"] = f"Unsupported value in {geos!r}"

    grading_value, is_spam = None, False
    scale = typed.get("grade_format")
    if scale is not None:
        value_field = "gpa_value" if scale is GradingScale.GPA else "percentage_value"
        value = fields.get(value_field)
        if is_blank(value):
            errors[value_field] = "Please answer this question"
        else:
            try:
                grading_value, is_spam = parse_grade_value(value, scale)
            except ValueError as e:
                errors[value_field] = str(e)

    if require_contact:
        for field in NAME_FIELDS[:1] + TEXT_FIELDS:
            value = fields.get(field)
            if is_blank(value) or len(str(value).strip()) < MIN_TEXT_LENGTH:
                errors[field] = "Please answer this question"
        if is_blank(fields.get("phone_number")):
            errors["phone_number"] = "Please enter a valid 10-digit phone number"

    if errors:
        raise SnapshotValidationError(errors)

    return ApplicantSnapshot(
        filler_role=typed["form_filler_type"],
        grade_level=typed["current_grade"],
        curriculum=typed["curriculum_type"],
        grading_scale=scale,
        grading_value=grading_value,
        is_spam_grade=is_spam,
        scholarship_need=typed["scholarship_requirement"],
        target_geographies=frozenset(typed["target_geographies"]),
        student_name=fields.get("student_name"),
        parent_name=fields.get("parent_name"),
        phone_number=fields.get("phone_number"),
        email=fields.get("parent_email"),
        school_name=fields.get("school_name"),
        location=fields.get("location"),
    )
