"""Pytest configuration and fixtures for test suite."""

import os
import tempfile
from pathlib import Path

import pytest

# Set test environment BEFORE any app imports
_TMP_DIR = Path(tempfile.mkdtemp(prefix="lead-engine-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["LOG_DIR"] = str(_TMP_DIR / "logs")
os.environ["ENVIRONMENT"] = "staging"
os.environ["WEBHOOK_URL"] = ""
os.environ["META_PIXEL_ID"] = ""
os.environ["META_CAPI_ACCESS_TOKEN"] = ""
os.environ["FUNNEL_STAGE_MONOTONIC"] = "false"


@pytest.fixture
def db():
    """Fresh tables per test."""
    from app.database import Base, engine, SessionLocal, init_db

    init_db()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    """TestClient bound to the same test database."""
    from fastapi.testclient import TestClient
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def page1_fields():
    """A complete page 1 for a parent that classifies as bch."""
    return {
        "form_filler_type": "parent",
        "student_name": "Aarav Mehta",
        "current_grade": "10",
        "location": "Bengaluru",
        "curriculum_type": "IB",
        "grade_format": "gpa",
        "gpa_value": "8.6",
        "school_name": "Greenwood High",
        "scholarship_requirement": "scholarship_optional",
        "target_geographies": ["US", "UK"],
        "country_code": "+91",
        "phone_number": "9876543210",
    }
