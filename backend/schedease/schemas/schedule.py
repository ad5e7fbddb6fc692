from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from schedease.models.schedule import ScheduleStatus
from schedease.schemas.settings import (
    parse_time_to_minutes,
    validate_day_value,
    validate_term_value,
    validate_time_value,
)


class ScheduleBase(BaseModel):
    course_id: str = Field(min_length=1, max_length=36)
    instructor_id: str = Field(min_length=1, max_length=36)
    room_id: str = Field(min_length=1, max_length=36)
    day_of_week: str
    start_time: str
    end_time: str
    term: str
    year: int = Field(ge=2000, le=2100)
    academic_year: str | None = Field(default=None, max_length=20)
    schedule_date: date | None = None

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return validate_day_value(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return validate_time_value(value)

    @field_validator("term")
    @classmethod
    def validate_term(cls, value: str) -> str:
        return validate_term_value(value)

    @model_validator(mode="after")
    def validate_slot(self) -> "ScheduleBase":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        if self.schedule_date is not None and self.schedule_date.strftime("%A") != self.day_of_week:
            raise ValueError("schedule_date must fall on day_of_week")
        return self


class ScheduleCreate(ScheduleBase):
    pass


class ScheduleUpdate(BaseModel):
    """Partial update; merged onto the stored row and re-validated as a ScheduleCreate."""

    course_id: str | None = Field(default=None, min_length=1, max_length=36)
    instructor_id: str | None = Field(default=None, min_length=1, max_length=36)
    room_id: str | None = Field(default=None, min_length=1, max_length=36)
    day_of_week: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    term: str | None = None
    year: int | None = Field(default=None, ge=2000, le=2100)
    academic_year: str | None = Field(default=None, max_length=20)
    schedule_date: date | None = None


class BorrowedInstanceEntry(BaseModel):
    date: str
    request_id: str
    replacement_instructor_id: str
    replacement_instructor_name: str | None = None


class ScheduleOut(BaseModel):
    id: str
    course_id: str
    instructor_id: str
    room_id: str
    day_of_week: str
    start_time: str
    end_time: str
    term: str
    year: int
    academic_year: str
    status: ScheduleStatus
    conflicts: list[str]
    schedule_date: date | None = None
    first_meeting_date: date | None = None
    is_borrowed_instance: bool = False
    source_schedule_id: str | None = None
    borrow_request_id: str | None = None
    borrow_original_instructor_id: str | None = None
    borrow_original_instructor_name: str | None = None
    borrow_date: date | None = None
    borrowed_instances: list[BorrowedInstanceEntry] = Field(default_factory=list)
    course_code: str | None = None
    course_name: str | None = None
    instructor_name: str | None = None
    room_name: str | None = None
    building: str | None = None
    year_level: int | None = None
    section: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ConflictCheckResponse(BaseModel):
    conflicts: list[str]
    has_conflicts: bool
