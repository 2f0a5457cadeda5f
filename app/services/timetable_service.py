from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import json
import logging
import os
import threading
from dataclasses import dataclass, field

from app.config import Settings, get_settings
from app.schemas import (
    WEEK_DAYS,
    Faculty,
    GenerateRequest,
    Period,
    SchoolClass,
    Subject,
    TimetableSlot,
    UpdateSlotRequest,
)
from app.scheduler.audit import find_violations
from app.scheduler.engine import cell_capacity, generate
from app.scheduler.validator import validate


logger = logging.getLogger(__name__)


class InfeasibleError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class GenerationError(RuntimeError):
    pass


@dataclass
class State:
    classes: List[SchoolClass] = field(default_factory=list)
    subjects: List[Subject] = field(default_factory=list)
    faculty: List[Faculty] = field(default_factory=list)
    periods: List[Period] = field(default_factory=list)
    timetable: List[TimetableSlot] = field(default_factory=list)


class TimetableService:
    """In-memory store around the generator.

    Holds the last input snapshot and the published timetable. A new
    timetable replaces the old one in a single assignment, and only after a
    run has succeeded.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self.state = State()
        self._lock = threading.Lock()

    # --- Snapshot in / timetable out ---
    def snapshot(self) -> Tuple[List[SchoolClass], List[Subject], List[Faculty], List[Period]]:
        with self._lock:
            s = self.state
            return list(s.classes), list(s.subjects), list(s.faculty), list(s.periods)

    def replace_timetable(self, slots: List[TimetableSlot], inputs: Optional[State] = None) -> None:
        """Publish ``slots`` as the timetable, swapping in ``inputs`` alongside when given."""
        with self._lock:
            if inputs is not None:
                self.state = State(
                    classes=list(inputs.classes),
                    subjects=list(inputs.subjects),
                    faculty=list(inputs.faculty),
                    periods=sorted(inputs.periods, key=lambda p: p.order),
                    timetable=list(slots),
                )
            else:
                self.state.timetable = list(slots)
        self._export(slots)

    def validate(self, req: GenerateRequest) -> List[str]:
        return validate(req.classes, req.subjects, req.faculty, req.periods)

    def generate(self, req: GenerateRequest) -> List[TimetableSlot]:
        seed = req.seed if req.seed is not None else self.settings.seed
        result = generate(
            req.classes,
            req.subjects,
            req.faculty,
            req.periods,
            seed=seed,
            practical_day_limit=self.settings.practical_day_limit,
        )
        if result.error_kind == "infeasible":
            raise InfeasibleError(result.errors)
        if not result.ok:
            raise GenerationError("; ".join(result.errors))

        inputs = State(classes=req.classes, subjects=req.subjects, faculty=req.faculty, periods=req.periods)
        self.replace_timetable(result.slots, inputs)
        return result.slots

    def get_timetable(self) -> List[TimetableSlot]:
        return list(self.state.timetable)

    def capacity(self) -> int:
        classes, _, _, periods = self.snapshot()
        return cell_capacity(classes, periods)

    def summary(self) -> Dict[str, Any]:
        classes, subjects, faculty, periods = self.snapshot()
        scheduled = len(self.get_timetable())
        capacity = cell_capacity(classes, periods)
        return {
            "classes": len(classes),
            "subjects": len(subjects),
            "faculty": len(faculty),
            "periods": len(periods),
            "scheduled": scheduled,
            "capacity": capacity,
            "coverage": scheduled / capacity if capacity else 0.0,
        }

    def clear_timetable(self) -> None:
        self.replace_timetable([])

    def violations(self) -> List[str]:
        classes, subjects, faculty, periods = self.snapshot()
        return find_violations(
            self.get_timetable(), classes, subjects, faculty, periods,
            practical_day_limit=self.settings.practical_day_limit,
        )

    # --- Grid views ---
    def class_grid(self, class_id: str) -> Dict[str, Dict[str, Optional[Dict[str, Any]]]]:
        if not any(c.id == class_id for c in self.state.classes):
            raise LookupError("Class not found")
        return self._grid(lambda slot: slot.class_id == class_id)

    def faculty_grid(self, faculty_id: str) -> Dict[str, Dict[str, Optional[Dict[str, Any]]]]:
        if not any(f.id == faculty_id for f in self.state.faculty):
            raise LookupError("Faculty not found")
        return self._grid(lambda slot: slot.faculty_id == faculty_id)

    def _grid(self, keep) -> Dict[str, Dict[str, Optional[Dict[str, Any]]]]:
        by_cell = {(s.day, s.period_id): s for s in self.state.timetable if keep(s)}
        grid: Dict[str, Dict[str, Optional[Dict[str, Any]]]] = {}
        for day in WEEK_DAYS:
            row: Dict[str, Optional[Dict[str, Any]]] = {}
            for period in self.state.periods:
                if period.is_break:
                    row[period.id] = {"type": "break", "label": period.name}
                    continue
                slot = by_cell.get((day, period.id))
                row[period.id] = slot.model_dump() if slot is not None else None
            grid[day] = row
        return grid

    # --- Manual edits ---
    def update_slot(self, req: UpdateSlotRequest) -> TimetableSlot:
        with self._lock:
            tt = self.state.timetable
            index = next((i for i, s in enumerate(tt) if s.id == req.slot_id), None)
            if index is None:
                raise LookupError("Slot not found")
            current = tt[index]

            period = next((p for p in self.state.periods if p.id == current.period_id), None)
            if period is not None and period.is_break:
                raise ValueError("Cannot update a break period")

            subject_id = req.subject_id if req.subject_id is not None else current.subject_id
            faculty_id = req.faculty_id if req.faculty_id is not None else current.faculty_id
            if not any(s.id == subject_id for s in self.state.subjects):
                raise ValueError(f"Unknown subject {subject_id}")
            fac = next((f for f in self.state.faculty if f.id == faculty_id), None)
            if fac is None:
                raise ValueError(f"Unknown faculty {faculty_id}")
            if subject_id not in fac.subject_ids:
                raise ValueError(f"Faculty {faculty_id} does not teach subject {subject_id}")
            for other in tt:
                if (
                    other.id != current.id
                    and other.faculty_id == faculty_id
                    and other.day == current.day
                    and other.period_id == current.period_id
                ):
                    raise ValueError(f"Faculty {faculty_id} is already teaching on {current.day}, period {current.period_id}")

            updated = current.model_copy(update={"subject_id": subject_id, "faculty_id": faculty_id})
            new_tt = list(tt)
            new_tt[index] = updated
            self.state.timetable = new_tt
        logger.info("Updated slot %s", updated.id)
        return updated

    def delete_slot(self, slot_id: str) -> None:
        with self._lock:
            tt = self.state.timetable
            remaining = [s for s in tt if s.id != slot_id]
            if len(remaining) == len(tt):
                raise LookupError("Slot not found")
            self.state.timetable = remaining
        logger.info("Deleted slot %s", slot_id)

    # --- Helpers ---
    def _export(self, slots: List[TimetableSlot]) -> None:
        path = self.settings.export_path
        if not path:
            return
        try:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump([s.model_dump() for s in slots], f)
        except OSError as e:
            logger.warning("Could not export timetable to %s: %s", path, e)
