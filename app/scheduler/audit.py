from __future__ import annotations
from typing import Dict, List, Sequence, Set, Tuple

from app.schemas import Faculty, Period, SchoolClass, Subject, TimetableSlot
from app.scheduler.tracker import PRACTICAL_DAY_LIMIT


def find_violations(
    slots: Sequence[TimetableSlot],
    classes: Sequence[SchoolClass],
    subjects: Sequence[Subject],
    faculty: Sequence[Faculty],
    periods: Sequence[Period],
    practical_day_limit: int = PRACTICAL_DAY_LIMIT,
) -> List[str]:
    """Report every hard-invariant violation in a timetable, one message each."""
    class_ids = {c.id for c in classes}
    subject_map = {s.id: s for s in subjects}
    faculty_map = {f.id: f for f in faculty}
    period_map = {p.id: p for p in periods}

    violations: List[str] = []
    seen_faculty: Set[Tuple[str, str, str]] = set()
    seen_cells: Set[Tuple[str, str, str]] = set()
    practical_days: Dict[str, Set[str]] = {}
    practical_by_day: Dict[Tuple[str, str], Set[str]] = {}

    for slot in slots:
        faculty_key = (slot.day, slot.period_id, slot.faculty_id)
        if faculty_key in seen_faculty:
            violations.append(f"Faculty {slot.faculty_id} double-booked on {slot.day}, period {slot.period_id}")
        seen_faculty.add(faculty_key)

        cell_key = (slot.day, slot.period_id, slot.class_id)
        if cell_key in seen_cells:
            violations.append(f"Class {slot.class_id} has more than one slot on {slot.day}, period {slot.period_id}")
        seen_cells.add(cell_key)

        period = period_map.get(slot.period_id)
        if period is None:
            violations.append(f"Slot {slot.id} references unknown period {slot.period_id}")
        elif period.is_break:
            violations.append(f"Slot {slot.id} is scheduled in break period {period.name}")

        if slot.class_id not in class_ids:
            violations.append(f"Slot {slot.id} references unknown class {slot.class_id}")

        subject = subject_map.get(slot.subject_id)
        if subject is None:
            violations.append(f"Slot {slot.id} references unknown subject {slot.subject_id}")

        fac = faculty_map.get(slot.faculty_id)
        if fac is None:
            violations.append(f"Slot {slot.id} references unknown faculty {slot.faculty_id}")
        elif slot.subject_id not in fac.subject_ids:
            violations.append(f"Faculty {fac.id} does not teach subject {slot.subject_id} (slot {slot.id})")

        if subject is not None and subject.is_practical:
            practical_days.setdefault(slot.class_id, set()).add(slot.day)
            practical_by_day.setdefault((slot.class_id, slot.day), set()).add(subject.id)

    for class_id, days in practical_days.items():
        if len(days) > practical_day_limit:
            violations.append(
                f"Class {class_id} has practicals on {len(days)} days (limit {practical_day_limit})"
            )
    for (class_id, day), subject_ids in practical_by_day.items():
        if len(subject_ids) > 1:
            violations.append(f"Class {class_id} has {len(subject_ids)} different practicals on {day}")

    return violations
