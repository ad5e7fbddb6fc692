from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class EnrollmentCreate(BaseModel):
    """Either an explicit ``students`` list or the year level/section bulk form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    schedule_id: str = Field(min_length=1, max_length=36)
    course_id: str | None = Field(default=None, max_length=36)
    instructor_id: str | None = Field(default=None, max_length=36)
    students: list[str] | None = None
    year_level: int | None = Field(default=None, ge=1, le=4)
    section: str | None = Field(default=None, min_length=1, max_length=20)

    @model_validator(mode="after")
    def validate_target(self) -> "EnrollmentCreate":
        if self.students:
            return self
        if self.year_level is None or self.section is None:
            raise ValueError("Provide students or both year_level and section")
        return self


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    course_id: str
    schedule_id: str
    instructor_id: str | None = None
    term: str
    year: int
    student_name: str | None = None
    course_code: str | None = None
    course_name: str | None = None
    year_level: int | None = None
    section: str | None = None
    department: str | None = None
    created_at: datetime | None = None


class EnrollmentConflict(BaseModel):
    student_id: str
    student_name: str | None = None
    reason: str


class EnrollmentResult(BaseModel):
    created: list[EnrollmentOut] = Field(default_factory=list)
    conflicts: list[EnrollmentConflict] = Field(default_factory=list)
