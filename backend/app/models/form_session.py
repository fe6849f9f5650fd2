"""
Form Session Model — Durable state of one lead-capture form session.
Maps to the 'form_sessions' table.
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Integer, Boolean

from app.database import Base


class FormSession(Base):
    __tablename__ = "form_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(String(64), unique=True, index=True, nullable=False)
    environment = Column(String(16))    # staging | prod

    # Page 1
    form_filler_type = Column(String(16))   # parent | student
    student_name = Column(String(128))
    current_grade = Column(String(16))      # 7_below | 8 .. 12 | masters
    location = Column(String(128))
    phone_number = Column(String(20))
    curriculum_type = Column(String(32))
    grade_format = Column(String(16))       # gpa | percentage
    gpa_value = Column(String(16))
    percentage_value = Column(String(16))
    school_name = Column(String(256))
    scholarship_requirement = Column(String(32))
    target_geographies = Column(JSON)

    # Page 2
    parent_name = Column(String(128))
    parent_email = Column(String(256))
    selected_date = Column(String(10))      # YYYY-MM-DD
    selected_slot = Column(String(8))       # "11 AM"

    # Derived
    lead_category = Column(String(16), index=True)
    counselor_id = Column(String(32))
    is_qualified_lead = Column(Boolean, default=False)
    is_counselling_booked = Column(Boolean, default=False)
    funnel_stage = Column(String(32), default="01_form_start", index=True)
    page_completed = Column(Integer, default=1)
    triggered_events = Column(JSON, default=list)

    # Attribution
    utm_source = Column(String(128))
    utm_medium = Column(String(128))
    utm_campaign = Column(String(128))
    utm_term = Column(String(128))
    utm_content = Column(String(128))
    utm_id = Column(String(128))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
