from __future__ import annotations
import re
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


WEEK_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

# "Lab ...", "... Lab", "... Practical ..."
PRACTICAL_NAME_PATTERN = re.compile(r"^\s*lab\b|\blab\s*$|\bpractical\b", re.IGNORECASE)


def looks_practical(name: str) -> bool:
    return bool(PRACTICAL_NAME_PATTERN.search(name or ""))


class SchoolClass(BaseModel):
    id: str
    name: str
    section: str = ""


class Subject(BaseModel):
    id: str
    name: str
    code: str = ""
    credits: int = 0
    is_practical: bool = False

    @model_validator(mode="before")
    @classmethod
    def _derive_practical(cls, data: Any) -> Any:
        # explicit flag wins; otherwise fall back to the naming convention
        if isinstance(data, dict) and data.get("is_practical") is None:
            data = dict(data)
            data["is_practical"] = looks_practical(data.get("name", ""))
        return data


class Faculty(BaseModel):
    id: str
    name: str
    email: str = ""
    subject_ids: List[str] = Field(default_factory=list, description="Ordered, first entry is the fallback subject")

    @field_validator("subject_ids")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))


class Period(BaseModel):
    id: str
    name: str
    start_time: str = ""
    end_time: str = ""
    order: int
    is_break: bool = False


class TimetableSlot(BaseModel):
    id: str
    day: str
    period_id: str
    class_id: str
    subject_id: str
    faculty_id: str

    @staticmethod
    def make_id(day: str, period_id: str, class_id: str) -> str:
        return f"{day}-{period_id}-{class_id}"


class GenerateRequest(BaseModel):
    classes: List[SchoolClass]
    subjects: List[Subject]
    faculty: List[Faculty]
    periods: List[Period]
    seed: Optional[int] = None


class ValidationResponse(BaseModel):
    errors: List[str]


class TimetableResponse(BaseModel):
    slots: List[TimetableSlot]
    count: int
    capacity: int = 0


class UpdateSlotRequest(BaseModel):
    slot_id: str
    subject_id: Optional[str] = None
    faculty_id: Optional[str] = None


class GridResponse(BaseModel):
    # day -> period_id -> slot dict, break marker or None
    periods: List[Period]
    grid: Dict[str, Dict[str, Optional[Dict[str, Any]]]]


class ViolationsResponse(BaseModel):
    violations: List[str]


class SummaryResponse(BaseModel):
    classes: int
    subjects: int
    faculty: int
    periods: int
    scheduled: int
    capacity: int
    coverage: float  # scheduled / capacity, 0.0 when there is no capacity
