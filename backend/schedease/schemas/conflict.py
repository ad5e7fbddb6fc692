from pydantic import BaseModel
from typing import Literal, List

ConflictType = Literal[
    "room_conflict",
    "instructor_conflict",
    "section_conflict",
    "instructor_availability",
    "workload_overflow",
    "room_capacity",
    "room_equipment",
]


class ConflictDetail(BaseModel):
    id: str
    conflict_type: ConflictType
    description: str
    severity: Literal["hard", "soft"]
    affected_slots: List[str]  # Schedule ids involved


class ConflictReport(BaseModel):
    term: str
    year: int
    checked_slots: int
    conflicts: List[ConflictDetail]
