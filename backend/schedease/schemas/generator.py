from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from schedease.schemas.settings import WorkingHours, validate_term_value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateScheduleRequest(CamelModel):
    term: str
    year: int = Field(ge=2000, le=2100)
    academic_year: str | None = Field(default=None, max_length=20)
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    save_to_database: bool = False
    regenerate: bool = False
    semester_start_date: date | None = None
    max_classes_per_day: int | None = Field(default=2, ge=1, le=12)

    @field_validator("term")
    @classmethod
    def validate_term(cls, value: str) -> str:
        return validate_term_value(value)


class GeneratedPlacement(CamelModel):
    course_id: str
    course_code: str
    course_name: str
    instructor_id: str
    instructor_name: str
    room_id: str
    room_name: str
    building: str
    day_of_week: str
    start_time: str
    end_time: str
    duration_minutes: int
    year_level: int
    section: str
    first_meeting_date: date | None = None


class SkippedCourse(CamelModel):
    course_id: str
    course_code: str
    year_level: int
    section: str
    reason: str


def _empty_year_levels() -> dict[str, int]:
    return {"1": 0, "2": 0, "3": 0, "4": 0}


class GenerationStats(CamelModel):
    term: str
    year: int
    academic_year: str
    total_courses: int = 0
    scheduled_courses: int = 0
    placed_courses: int = 0
    already_scheduled: int = 0
    conflicts: int = 0
    by_year_level: dict[str, int] = Field(default_factory=_empty_year_levels)
    by_section: dict[str, int] = Field(default_factory=dict)
    skipped: list[SkippedCourse] = Field(default_factory=list)
    semester_start_date: date | None = None
    semester_end_date: date | None = None
    semester_weeks: int | None = None
    saved: bool = False
    regenerated: bool = False
    schedules: list[GeneratedPlacement] = Field(default_factory=list)
