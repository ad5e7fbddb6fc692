from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

DAY_ORDER = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
DAY_VALUES = set(DAY_ORDER)
WORKING_DAY_VALUES = DAY_VALUES - {"Sunday"}
DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}
TERM_VALUES = ("First Term", "Second Term", "Third Term")

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_day(value: str) -> str:
    day = value.strip()
    return DAY_SHORT_MAP.get(day, day)


def academic_year_label(year: int) -> str:
    return f"{year}-{year + 1}"


def validate_day_value(value: str) -> str:
    day = normalize_day(value)
    if day not in DAY_VALUES:
        raise ValueError("Invalid day value")
    return day


def validate_time_value(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    return value


def validate_term_value(value: str) -> str:
    term = value.strip()
    if term not in TERM_VALUES:
        raise ValueError(f"'{term}' is not a valid term. Must be one of: {', '.join(TERM_VALUES)}")
    return term


class WorkingHours(BaseModel):
    start_time: str = "07:00"
    end_time: str = "18:00"
    days: list[str] = Field(
        default_factory=lambda: ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
        min_length=1,
        max_length=6,
    )

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return validate_time_value(value)

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        days: list[str] = []
        for item in value:
            day = validate_day_value(item)
            if day not in WORKING_DAY_VALUES:
                raise ValueError("Sunday is not a working day")
            if day not in days:
                days.append(day)
        return sorted(days, key=DAY_ORDER.index)

    @model_validator(mode="after")
    def validate_time_order(self) -> "WorkingHours":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self
