from pydantic import BaseModel, Field, RootModel, field_validator, model_validator

from schedease.schemas.settings import DAY_ORDER, parse_time_to_minutes, validate_day_value, validate_time_value


class AvailabilityWindow(BaseModel):
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return validate_time_value(value)

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityWindow":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class InstructorAvailability(RootModel[dict[str, list[AvailabilityWindow]]]):
    """Day name -> sorted, non-overlapping [start, end) windows."""

    root: dict[str, list[AvailabilityWindow]] = Field(default_factory=dict)

    @field_validator("root", mode="before")
    @classmethod
    def normalize_days(cls, value):
        if not isinstance(value, dict):
            return value
        normalized: dict = {}
        for raw_day, windows in value.items():
            day = validate_day_value(str(raw_day))
            if day in normalized:
                raise ValueError(f"Duplicate availability entry for {day}")
            normalized[day] = windows
        return normalized

    @model_validator(mode="after")
    def validate_windows(self) -> "InstructorAvailability":
        for day, windows in self.root.items():
            previous_end: int | None = None
            for window in windows:
                start = parse_time_to_minutes(window.start_time)
                if previous_end is not None and start < previous_end:
                    raise ValueError(f"Availability windows on {day} must be sorted and non-overlapping")
                previous_end = parse_time_to_minutes(window.end_time)
        return self

    def to_storage(self) -> dict[str, list[dict]]:
        return {
            day: [window.model_dump() for window in self.root[day]]
            for day in sorted(self.root, key=DAY_ORDER.index)
        }


class InstructorOut(BaseModel):
    id: str
    name: str
    email: str | None = None
    department: str
    max_hours_per_week: int
    specializations: list[str]
    availability: dict[str, list[AvailabilityWindow]]

    model_config = {"from_attributes": True}
