"""
Hashing Utilities — SHA-256 hashing for identity fields sent to analytics sinks.
"""
import hashlib
import json


def generate_hash(data: dict) -> str:
    """Generate a SHA-256 hash of a dictionary (deterministic, sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def hash_identity(value: str | None) -> str | None:
    """SHA-256 of the trimmed, lower-cased value. None/blank stays None."""
    if value is None:
        return None
    normalized = str(value).strip().lower()
    if not normalized:
        return None
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
