from __future__ import annotations
from typing import List, Sequence

from app.schemas import Faculty, Period, SchoolClass, Subject


def _duplicate_ids(records) -> List[str]:
    seen = set()
    dupes: List[str] = []
    for record in records:
        if record.id in seen and record.id not in dupes:
            dupes.append(record.id)
        seen.add(record.id)
    return dupes


def validate(
    classes: Sequence[SchoolClass],
    subjects: Sequence[Subject],
    faculty: Sequence[Faculty],
    periods: Sequence[Period],
) -> List[str]:
    """Pre-flight feasibility checks. An empty list means generation may run.

    The faculty/class count check is necessary, not sufficient: every class
    needs a distinct faculty member in each period.
    """
    errors: List[str] = []
    if not classes:
        errors.append("No classes available.")
    if not subjects:
        errors.append("No subjects available.")
    if not faculty:
        errors.append("No faculty available.")
    if not periods:
        errors.append("No periods defined.")

    # Same test the scheduler uses to decide which faculty are inert.
    known = {s.id for s in subjects}
    if not any(sid in known for f in faculty for sid in f.subject_ids):
        errors.append("No faculty member has any subjects assigned.")

    if len(faculty) < len(classes):
        errors.append(
            f"Not enough faculty: {len(faculty)} faculty member(s) for {len(classes)} class(es)."
        )

    for label, records in (("class", classes), ("subject", subjects), ("faculty", faculty), ("period", periods)):
        dupes = _duplicate_ids(records)
        if dupes:
            errors.append(f"Duplicate {label} ids: {', '.join(dupes)}.")
    return errors
