from __future__ import annotations
from typing import Callable, Dict, List, Optional, Sequence
import enum
import logging
import random
from dataclasses import dataclass, field

from app.schemas import WEEK_DAYS, Faculty, Period, SchoolClass, Subject, TimetableSlot
from app.scheduler.policy import AssignmentPolicy
from app.scheduler.tracker import PRACTICAL_DAY_LIMIT, AvailabilityTracker
from app.scheduler.validator import validate


logger = logging.getLogger(__name__)


class GenerationState(str, enum.Enum):
    START = "start"
    VALIDATING = "validating"
    GENERATING = "generating"
    REJECTED = "rejected"
    DONE = "done"


class GenerationCancelled(Exception):
    pass


@dataclass
class GenerationResult:
    state: GenerationState
    slots: List[TimetableSlot] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    error_kind: Optional[str] = None  # "infeasible" | "unexpected"
    capacity: int = 0  # teaching cells in the week

    @property
    def ok(self) -> bool:
        return self.state is GenerationState.DONE

    @property
    def empty_cells(self) -> int:
        return self.capacity - len(self.slots) if self.ok else 0


def cell_capacity(classes: Sequence[SchoolClass], periods: Sequence[Period]) -> int:
    return len(WEEK_DAYS) * sum(1 for p in periods if not p.is_break) * len(classes)


class GreedyScheduler:
    """Single-pass constructive scheduler.

    Walks days, then non-break periods in ``order``, then classes in input
    order, and fills each cell through :class:`AssignmentPolicy`. There is no
    backtracking: a cell nobody can take is left empty.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        practical_day_limit: int = PRACTICAL_DAY_LIMIT,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.practical_day_limit = practical_day_limit
        self.should_cancel = should_cancel
        self.state = GenerationState.START

    # --- Public API ---
    def run(
        self,
        classes: Sequence[SchoolClass],
        subjects: Sequence[Subject],
        faculty: Sequence[Faculty],
        periods: Sequence[Period],
    ) -> List[TimetableSlot]:
        subject_map: Dict[str, Subject] = {s.id: s for s in subjects}
        tracker = AvailabilityTracker(subject_map, self.practical_day_limit)
        policy = AssignmentPolicy(subject_map)

        teaching_periods = [p for p in sorted(periods, key=lambda p: p.order) if not p.is_break]
        # Faculty whose subjects all fail to resolve are as inert as those with none.
        active = [f for f in faculty if any(sid in subject_map for sid in f.subject_ids)]

        self.state = GenerationState.GENERATING
        slots: List[TimetableSlot] = []
        gaps = 0
        for day in WEEK_DAYS:
            for period in teaching_periods:
                if self.should_cancel is not None and self.should_cancel():
                    raise GenerationCancelled(f"Generation cancelled at {day} / {period.name}")
                for school_class in classes:
                    candidates = [f for f in active if tracker.is_faculty_free(f.id, day, period.id)]
                    self.rng.shuffle(candidates)
                    slot = policy.assign(day, period, school_class, candidates, tracker)
                    if slot is None:
                        gaps += 1
                        logger.debug("No faculty available for %s on %s, period %s", school_class.id, day, period.id)
                        continue
                    tracker.record(slot)
                    slots.append(slot)
        self.state = GenerationState.DONE
        logger.info("Generated %d slots (%d cells left empty)", len(slots), gaps)
        return slots


def generate(
    classes: Sequence[SchoolClass],
    subjects: Sequence[Subject],
    faculty: Sequence[Faculty],
    periods: Sequence[Period],
    *,
    seed: Optional[int] = None,
    practical_day_limit: int = PRACTICAL_DAY_LIMIT,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> GenerationResult:
    """Validate, then run the greedy scheduler.

    Never raises for infeasible input or scheduler failures; both come back as
    a non-ok :class:`GenerationResult` so callers can leave their previous
    timetable untouched. A run that leaves some cells empty is still ok.
    """
    scheduler = GreedyScheduler(
        rng=random.Random(seed),
        practical_day_limit=practical_day_limit,
        should_cancel=should_cancel,
    )
    scheduler.state = GenerationState.VALIDATING
    errors = validate(classes, subjects, faculty, periods)
    if errors:
        scheduler.state = GenerationState.REJECTED
        logger.warning("Timetable generation rejected: %s", "; ".join(errors))
        return GenerationResult(state=scheduler.state, errors=errors, error_kind="infeasible")

    try:
        slots = scheduler.run(classes, subjects, faculty, periods)
    except Exception as e:
        scheduler.state = GenerationState.REJECTED
        logger.exception("Timetable generation failed")
        return GenerationResult(state=scheduler.state, errors=[str(e) or type(e).__name__], error_kind="unexpected")
    return GenerationResult(state=scheduler.state, slots=slots, capacity=cell_capacity(classes, periods))
