"""
Tests for counselor slot availability.
"""

from datetime import date, datetime

import pytest

from app.schemas.enums import LeadCategory
from app.services.counselor_registry import (
    CounselorProfile, COUNSELORS, counselor_for_category,
    MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY,
)
from app.services.slot_service import SlotService, SLOT_HOURS, hour_label, parse_hour_label

# 2026-10-19 is a Monday
A_MONDAY = date(2026, 10, 19)
A_TUESDAY = date(2026, 10, 20)
A_SUNDAY = date(2026, 10, 25)


@pytest.fixture
def weekday_counselor():
    """Monday closed, Tuesday-Saturday 11 AM to 7 PM, Sunday closed."""
    return CounselorProfile(
        id="test",
        name="Test Counselor",
        profile_url="",
        categories=frozenset({LeadCategory.BCH}),
        weekly_template={day: ((11, 19),) for day in (TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY)},
    )


def labels(slots):
    return [s.label for s in slots]


class TestHourVocabulary:

    def test_two_pm_is_never_offered(self):
        assert 14 not in SLOT_HOURS
        assert SLOT_HOURS[0] == 10 and SLOT_HOURS[-1] == 20

    def test_labels(self):
        assert [hour_label(h) for h in (10, 12, 13, 20)] == ["10 AM", "12 PM", "1 PM", "8 PM"]

    def test_parse_label_round_trip(self):
        assert parse_hour_label("3 pm") == 15
        assert parse_hour_label("2 PM") is None
        assert parse_hour_label("") is None


class TestAvailableSlots:

    def test_closed_day_is_empty(self, weekday_counselor):
        assert SlotService.available_slots(weekday_counselor, A_MONDAY) == ()

    def test_open_day_ascending_without_two_pm(self, weekday_counselor):
        slots = SlotService.available_slots(weekday_counselor, A_TUESDAY)
        assert labels(slots) == ["11 AM", "12 PM", "1 PM", "3 PM", "4 PM", "5 PM", "6 PM", "7 PM"]

    def test_past_date_is_empty(self, weekday_counselor):
        assert SlotService.available_slots(weekday_counselor, A_TUESDAY, today=date(2026, 10, 21)) == ()

    def test_restartable(self, weekday_counselor):
        first = SlotService.available_slots(weekday_counselor, A_TUESDAY)
        assert list(first) == list(first)
        assert SlotService.available_slots(weekday_counselor, A_TUESDAY) == first


class TestCounselorTemplates:

    def test_bch_counselor_monday_closed(self):
        counselor = counselor_for_category(LeadCategory.BCH)
        assert counselor.id == "viswanathan"
        assert SlotService.available_slots(counselor, A_MONDAY) == ()

    def test_bch_counselor_sunday_until_three(self):
        counselor = COUNSELORS["viswanathan"]
        assert labels(SlotService.available_slots(counselor, A_SUNDAY)) == ["11 AM", "12 PM", "1 PM", "3 PM"]

    def test_bch_counselor_weekday_until_eight(self):
        counselor = COUNSELORS["viswanathan"]
        assert labels(SlotService.available_slots(counselor, A_TUESDAY))[-1] == "8 PM"

    def test_luminaire_counselor_split_day(self):
        counselor = counselor_for_category("lum-l2")
        assert counselor.id == "karthik"
        assert labels(SlotService.available_slots(counselor, A_MONDAY)) == [
            "11 AM", "12 PM", "1 PM", "4 PM", "5 PM", "6 PM", "7 PM", "8 PM",
        ]
        assert SlotService.available_slots(counselor, A_SUNDAY) == ()

    @pytest.mark.parametrize("category", ["nurture", "masters", "drop", None, "unknown"])
    def test_unqualified_categories_have_no_counselor(self, category):
        assert counselor_for_category(category) is None


class TestOfferableSlots:

    def test_same_day_minimum_lead_time(self, weekday_counselor):
        now = datetime(2026, 10, 20, 13, 30)
        slots = SlotService.offerable_slots(weekday_counselor, A_TUESDAY, now, min_lead_hours=2)
        assert labels(slots) == ["3 PM", "4 PM", "5 PM", "6 PM", "7 PM"]

    def test_outside_lookahead_window_is_empty(self, weekday_counselor):
        now = datetime(2026, 10, 13, 9, 0)
        assert SlotService.offerable_slots(weekday_counselor, A_TUESDAY, now, lookahead_days=7) == ()

    def test_window_starts_today(self):
        dates = SlotService.bookable_dates(A_MONDAY, 7)
        assert dates[0] == A_MONDAY and len(dates) == 7 and dates[-1] == A_SUNDAY

    def test_is_offerable(self, weekday_counselor):
        now = datetime(2026, 10, 19, 9, 0)
        assert SlotService.is_offerable(weekday_counselor, A_TUESDAY, "11 AM", now)
        assert not SlotService.is_offerable(weekday_counselor, A_TUESDAY, "2 PM", now)
        assert not SlotService.is_offerable(weekday_counselor, A_MONDAY, "11 AM", now)
