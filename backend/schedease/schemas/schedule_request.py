from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from schedease.models.schedule_request import RequestPurpose, RequestStatus, RequestType
from schedease.schemas.settings import (
    parse_time_to_minutes,
    validate_day_value,
    validate_term_value,
    validate_time_value,
)


class ScheduleRequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    instructor_id: str = Field(min_length=1, max_length=36)
    request_type: RequestType
    course_id: str | None = Field(default=None, max_length=36)
    schedule_id: str | None = Field(default=None, max_length=36)
    room_id: str | None = Field(default=None, max_length=36)
    request_date: date | None = Field(default=None, alias="date")
    day_of_week: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    term: str | None = None
    year: int | None = Field(default=None, ge=2000, le=2100)
    purpose: RequestPurpose | None = None
    notes: str | None = Field(default=None, max_length=2000)
    details: str | None = Field(default=None, max_length=2000)

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        return validate_day_value(value) if value is not None else None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        return validate_time_value(value) if value is not None else None

    @field_validator("term")
    @classmethod
    def validate_term(cls, value: str | None) -> str | None:
        return validate_term_value(value) if value is not None else None

    @model_validator(mode="after")
    def validate_window(self) -> "ScheduleRequestCreate":
        if self.start_time and self.end_time:
            if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
                raise ValueError("end_time must be after start_time")
        if self.request_date is not None and self.day_of_week is not None:
            if self.request_date.strftime("%A") != self.day_of_week:
                raise ValueError("date must fall on day_of_week")
        return self


class RequestDecision(BaseModel):
    reviewer_notes: str | None = Field(default=None, max_length=2000)
    actor: str | None = Field(default=None, max_length=200)


class ScheduleRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    instructor_id: str
    request_type: RequestType
    course_id: str | None = None
    schedule_id: str | None = None
    room_id: str | None = None
    request_date: date | None = Field(default=None, serialization_alias="date")
    day_of_week: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    term: str | None = None
    year: int | None = None
    purpose: RequestPurpose | None = None
    notes: str | None = None
    details: str
    status: RequestStatus
    conflict_flag: bool
    conflicts: list[str]
    instructor_name: str | None = None
    course_code: str | None = None
    course_name: str | None = None
    room_name: str | None = None
    original_instructor_id: str | None = None
    original_instructor_name: str | None = None
    reviewer_notes: str | None = None
    reviewed_at: datetime | None = None
    created_schedule_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
