"""
Validators — Regex and rule-based validation for contact fields.
"""
import re


def validate_local_phone(digits: str | None) -> bool:
    """Validate a local mobile number: exactly 10 digits."""
    if not digits:
        return False
    return bool(re.match(r"^[0-9]{10}$", digits))


def validate_e164(phone: str | None) -> bool:
    """Validate an E.164 number: '+' followed by 8 to 15 digits."""
    if not phone:
        return False
    return bool(re.match(r"^\+[1-9]\d{7,14}$", phone))


def compose_phone(local: str, country_code: str) -> str:
    """Join a country code and local digits into '+<cc><digits>'."""
    cc = re.sub(r"[^\d]", "", country_code or "")
    digits = re.sub(r"[^\d]", "", local or "")
    return f"+{cc}{digits}"


def validate_iso_date(value: str | None) -> bool:
    """Validate a YYYY-MM-DD date string."""
    if not value:
        return False
    return bool(re.match(r"^\d{4}-\d{2}-\d{2}$", value.strip()))


def sanitize_name(name: str | None) -> str:
    """Basic sanitization for names: strip, collapse whitespace."""
    if not name:
        return ""
    return re.sub(r"\s+", " ", re.sub(r"[^\w\s.'-]", "", name.strip()))


def split_name(full_name: str | None) -> tuple[str, str]:
    """Split a full name into (first, last). Last is '' for single-word names."""
    parts = sanitize_name(full_name).split(" ")
    if not parts or not parts[0]:
        return "", ""
    return parts[0], " ".join(parts[1:])
