"""
Slot Service — Counselor slot availability from weekly templates.
Pure calendar arithmetic; no live calendar integration.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from app.services.counselor_registry import CounselorProfile

# Hourly vocabulary: 10 AM .. 8 PM, 2 PM is never offered
SLOT_HOURS = tuple(h for h in range(10, 21) if h != 14)


def hour_label(hour: int) -> str:
    """24h hour -> '10 AM' / '12 PM' / '3 PM'."""
    if hour == 12:
        return "12 PM"
    if hour > 12:
        return f"{hour - 12} PM"
    return f"{hour} AM"


def parse_hour_label(label: str) -> Optional[int]:
    """Inverse of hour_label. None for anything outside the vocabulary."""
    for hour in SLOT_HOURS:
        if hour_label(hour) == (label or "").strip().upper():
            return hour
    return None


@dataclass(frozen=True)
class Slot:
    date: date
    hour: int

    @property
    def label(self) -> str:
        return hour_label(self.hour)

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "slot": self.label}


class SlotService:
    """Computes bookable slots for a counselor."""

    @staticmethod
    def available_slots(counselor: CounselorProfile, day: date, today: Optional[date] = None) -> Tuple[Slot, ...]:
        """Slots the counselor's template opens on `day`, ascending.

        A closed weekday, or a day before `today` when given, yields ().
        """
        if today is not None and day < today:
            return ()
        intervals = counselor.intervals_for(day.weekday())
        return tuple(
            Slot(day, hour)
            for hour in SLOT_HOURS
            if any(start <= hour <= end for start, end in intervals)
        )

    @staticmethod
    def bookable_dates(today: date, lookahead_days: int = 7) -> List[date]:
        """Rolling window starting today."""
        return [today + timedelta(days=i) for i in range(lookahead_days)]

    @staticmethod
    def offerable_slots(
        counselor: CounselorProfile,
        day: date,
        now: datetime,
        lookahead_days: int = 7,
        min_lead_hours: int = 2,
    ) -> Tuple[Slot, ...]:
        """Slots a user may actually pick right now.

        Applies the lookahead window and, for today, drops hours sooner than
        `min_lead_hours` from now.
        """
        today = now.date()
        if day not in SlotService.bookable_dates(today, lookahead_days):
            return ()
        slots = SlotService.available_slots(counselor, day, today=today)
        if day == today:
            slots = tuple(s for s in slots if s.hour >= now.hour + min_lead_hours)
        return slots

    @staticmethod
    def is_offerable(
        counselor: CounselorProfile,
        day: date,
        label: str,
        now: datetime,
        lookahead_days: int = 7,
        min_lead_hours: int = 2,
    ) -> bool:
        hour = parse_hour_label(label)
        if hour is None:
            return False
        return any(
            s.hour == hour
            for s in SlotService.offerable_slots(counselor, day, now, lookahead_days, min_lead_hours)
        )
