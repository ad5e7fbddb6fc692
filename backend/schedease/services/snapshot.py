"""Read helpers that turn stored rows into the detector's snapshot records."""

from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from schedease.models.course import Course
from schedease.models.instructor import Instructor
from schedease.models.room import Room
from schedease.models.schedule import Schedule, ScheduleStatus
from schedease.schemas.settings import normalize_day, parse_time_to_minutes
from schedease.services.conflict_service import ConflictService, InstructorInfo, RoomInfo, SlotRecord


def room_info(room: Room) -> RoomInfo:
    return RoomInfo(
        id=room.id,
        name=room.name,
        capacity=room.capacity,
        equipment=frozenset(room.equipment or []),
        kind=room.kind.value if room.kind is not None else None,
        is_available=room.is_available,
    )


def instructor_info(instructor: Instructor) -> InstructorInfo:
    availability: dict[str, tuple[tuple[int, int], ...]] = {}
    for raw_day, windows in (instructor.availability or {}).items():
        parsed = [
            (parse_time_to_minutes(window["start_time"]), parse_time_to_minutes(window["end_time"]))
            for window in windows or []
        ]
        availability[normalize_day(raw_day)] = tuple(sorted(parsed))
    return InstructorInfo(
        id=instructor.id,
        name=instructor.name,
        max_hours_per_week=instructor.max_hours_per_week,
        availability=availability,
    )


def slot_from_schedule(schedule: Schedule, course: Course | None) -> SlotRecord:
    # Section identity comes from the course row; the copied display fields are a fallback for orphans.
    if course is not None:
        year_level, section, code = course.year_level, course.section, course.code
        required_capacity = course.required_capacity
        required_equipment = frozenset(course.required_equipment or [])
    else:
        year_level, section = schedule.year_level or 0, schedule.section or f"orphan-{schedule.id}"
        code = schedule.course_code or schedule.course_id
        required_capacity, required_equipment = 0, frozenset()
    return SlotRecord(
        id=schedule.id,
        course_id=schedule.course_id,
        course_code=code,
        instructor_id=schedule.instructor_id,
        room_id=schedule.room_id,
        year_level=year_level,
        section=section,
        day_of_week=schedule.day_of_week,
        start=parse_time_to_minutes(schedule.start_time),
        end=parse_time_to_minutes(schedule.end_time),
        term=schedule.term,
        year=schedule.year,
        schedule_date=schedule.schedule_date,
        required_capacity=required_capacity,
        required_equipment=required_equipment,
        borrowed_dates=frozenset(
            date.fromisoformat(entry["date"]) for entry in schedule.borrowed_instances or [] if entry.get("date")
        ),
    )


def active_schedules(db: Session, *, term: str, year: int) -> list[Schedule]:
    query = select(Schedule).where(
        Schedule.term == term,
        Schedule.year == year,
        Schedule.status != ScheduleStatus.canceled,
    )
    return list(db.execute(query).scalars())


def load_snapshot(db: Session, *, term: str, year: int) -> list[SlotRecord]:
    schedules = active_schedules(db, term=term, year=year)
    course_ids = {item.course_id for item in schedules}
    courses: dict[str, Course] = {}
    if course_ids:
        courses = {item.id: item for item in db.execute(select(Course).where(Course.id.in_(course_ids))).scalars()}
    return [slot_from_schedule(item, courses.get(item.course_id)) for item in schedules]


def load_resource_maps(db: Session) -> tuple[dict[str, RoomInfo], dict[str, InstructorInfo]]:
    rooms = {item.id: room_info(item) for item in db.execute(select(Room)).scalars()}
    instructors = {item.id: instructor_info(item) for item in db.execute(select(Instructor)).scalars()}
    return rooms, instructors


def build_conflict_service(db: Session, *, term: str, year: int) -> ConflictService:
    rooms, instructors = load_resource_maps(db)
    return ConflictService(load_snapshot(db, term=term, year=year), rooms, instructors)
