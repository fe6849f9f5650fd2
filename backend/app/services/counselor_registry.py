"""
Counselor Registry — Static counselor profiles and weekly availability templates.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from app.schemas.enums import LeadCategory

# Inclusive (start_hour, end_hour) ranges on a 24h clock
HourInterval = Tuple[int, int]

# Weekday index follows date.weekday(): Monday = 0 .. Sunday = 6
MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)


@dataclass(frozen=True)
class CounselorProfile:
    id: str
    name: str
    profile_url: str
    categories: FrozenSet[LeadCategory]
    # Missing weekday = closed
    weekly_template: Dict[int, Tuple[HourInterval, ...]] = field(default_factory=dict)

    def intervals_for(self, weekday: int) -> Tuple[HourInterval, ...]:
        return self.weekly_template.get(weekday, ())

    def is_closed(self, weekday: int) -> bool:
        return not self.intervals_for(weekday)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "profile_url": self.profile_url,
            "categories": sorted(c.value for c in self.categories),
        }


# ─── Counselor Table ──────────────────────────────────────────────────
COUNSELORS: Dict[str, CounselorProfile] = {
    "viswanathan": CounselorProfile(
        id="viswanathan",
        name="Viswanathan Ramakrishnan",
        profile_url="https://www.linkedin.com/in/viswanathan-r-8504182/",
        categories=frozenset({LeadCategory.BCH}),
        weekly_template={
            TUESDAY: ((11, 20),),
            WEDNESDAY: ((11, 20),),
            THURSDAY: ((11, 20),),
            FRIDAY: ((11, 20),),
            SATURDAY: ((11, 20),),
            SUNDAY: ((11, 15),),
        },
    ),
    "karthik": CounselorProfile(
        id="karthik",
        name="Karthik Lakshman",
        profile_url="https://www.linkedin.com/in/karthiklakshman/",
        categories=frozenset({LeadCategory.LUM_L1, LeadCategory.LUM_L2}),
        weekly_template={
            day: ((11, 13), (16, 20))
            for day in (MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY)
        },
    ),
}


def get_counselor(counselor_id: str) -> Optional[CounselorProfile]:
    return COUNSELORS.get(counselor_id)


def counselor_for_category(category: LeadCategory | str | None) -> Optional[CounselorProfile]:
    """Counselor handling a category, or None for unqualified categories."""
    if category is None:
        return None
    try:
        category = LeadCategory(category)
    except ValueError:
        return None
    for counselor in COUNSELORS.values():
        if category in counselor.categories:
            return counselor
    return None
