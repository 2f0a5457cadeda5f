from __future__ import annotations
from typing import List, Mapping, Optional, Sequence, Tuple

from app.schemas import Faculty, Period, SchoolClass, Subject, TimetableSlot
from app.scheduler.tracker import AvailabilityTracker


class AssignmentPolicy:
    """Chooses a (subject, faculty) pair for one cell.

    Candidates are expected to be free in this period and already shuffled;
    the first match in candidate order wins within each pass. The policy only
    reads the tracker, recording the returned slot is the caller's job.
    """

    def __init__(self, subjects: Mapping[str, Subject]) -> None:
        self.subjects = subjects

    # --- Public API ---
    def assign(
        self,
        day: str,
        period: Period,
        school_class: SchoolClass,
        candidates: Sequence[Faculty],
        tracker: AvailabilityTracker,
    ) -> Optional[TimetableSlot]:
        for attempt in (self._new_theory_pass, self._practical_pass, self._fallback_pass):
            choice = attempt(day, school_class.id, candidates, tracker)
            if choice is not None:
                fac, subject_id = choice
                return TimetableSlot(
                    id=TimetableSlot.make_id(day, period.id, school_class.id),
                    day=day,
                    period_id=period.id,
                    class_id=school_class.id,
                    subject_id=subject_id,
                    faculty_id=fac.id,
                )
        return None

    # --- Passes ---
    def _new_theory_pass(self, day: str, class_id: str, candidates: Sequence[Faculty], tracker: AvailabilityTracker) -> Optional[Tuple[Faculty, str]]:
        taught = tracker.subjects_taught_today(class_id, day)
        for fac in candidates:
            for subject in self._subjects_of(fac):
                if not subject.is_practical and subject.id not in taught:
                    return fac, subject.id
        return None

    def _practical_pass(self, day: str, class_id: str, candidates: Sequence[Faculty], tracker: AvailabilityTracker) -> Optional[Tuple[Faculty, str]]:
        if not tracker.can_start_new_practical_day(class_id, day):
            return None
        locked = tracker.locked_practical(class_id, day)
        for fac in candidates:
            for subject in self._subjects_of(fac):
                if not subject.is_practical:
                    continue
                if locked is None or subject.id == locked:
                    return fac, subject.id
        return None

    def _fallback_pass(self, day: str, class_id: str, candidates: Sequence[Faculty], tracker: AvailabilityTracker) -> Optional[Tuple[Faculty, str]]:
        # Repetition is allowed here, the practical cap and lock are not relaxed.
        for fac in candidates:
            for subject in self._subjects_of(fac):
                if self._admissible(subject, day, class_id, tracker):
                    return fac, subject.id
        return None

    # --- Helpers ---
    def _subjects_of(self, fac: Faculty) -> List[Subject]:
        return [self.subjects[sid] for sid in fac.subject_ids if sid in self.subjects]

    @staticmethod
    def _admissible(subject: Subject, day: str, class_id: str, tracker: AvailabilityTracker) -> bool:
        if not subject.is_practical:
            return True
        locked = tracker.locked_practical(class_id, day)
        if locked is not None:
            return subject.id == locked
        return tracker.can_start_new_practical_day(class_id, day)
