from __future__ import annotations
from typing import Dict, Mapping, Optional, Set, Tuple

from app.schemas import Subject, TimetableSlot


PRACTICAL_DAY_LIMIT = 3


class AvailabilityTracker:
    """Bookkeeping for a single generation run.

    Keys carry the day (and period where relevant), so nothing has to be
    cleared between days: a new ``(class_id, day)`` key simply starts empty.
    """

    def __init__(self, subjects: Mapping[str, Subject], practical_day_limit: int = PRACTICAL_DAY_LIMIT) -> None:
        self.subjects = subjects
        self.practical_day_limit = practical_day_limit
        self.occupied_faculty_slots: Set[Tuple[str, str, str]] = set()
        self.daily_class_subjects: Dict[Tuple[str, str], Set[str]] = {}
        self.daily_class_practical: Dict[Tuple[str, str], str] = {}
        self.class_practical_days: Dict[str, Set[str]] = {}

    def is_faculty_free(self, faculty_id: str, day: str, period_id: str) -> bool:
        return (faculty_id, day, period_id) not in self.occupied_faculty_slots

    def subjects_taught_today(self, class_id: str, day: str) -> Set[str]:
        return self.daily_class_subjects.setdefault((class_id, day), set())

    def locked_practical(self, class_id: str, day: str) -> Optional[str]:
        return self.daily_class_practical.get((class_id, day))

    def practical_days(self, class_id: str) -> Set[str]:
        return self.class_practical_days.get(class_id, set())

    def can_start_new_practical_day(self, class_id: str, day: str) -> bool:
        days = self.practical_days(class_id)
        return len(days) < self.practical_day_limit or day in days

    def record(self, slot: TimetableSlot) -> None:
        self.occupied_faculty_slots.add((slot.faculty_id, slot.day, slot.period_id))
        self.subjects_taught_today(slot.class_id, slot.day).add(slot.subject_id)

        subject = self.subjects.get(slot.subject_id)
        if subject is None or not subject.is_practical:
            return
        self.daily_class_practical.setdefault((slot.class_id, slot.day), slot.subject_id)
        self.class_practical_days.setdefault(slot.class_id, set()).add(slot.day)
