from __future__ import annotations

import logging
import uuid

from pydantic import ValidationError
from sqlalchemy.orm import Session

from schedease.core.config import get_settings
from schedease.core.exceptions import InputValidationError, ResourceNotFoundError, ScheduleConflictError
from schedease.db.transactions import commit_or_raise
from schedease.models.course import Course
from schedease.models.instructor import Instructor
from schedease.models.room import Room
from schedease.models.schedule import WEEKLY_OCCURRENCE, Schedule, ScheduleStatus
from schedease.schemas.schedule import ScheduleCreate, ScheduleUpdate
from schedease.schemas.settings import academic_year_label, parse_time_to_minutes
from schedease.services.audit import log_activity
from schedease.services.conflict_service import SlotRecord
from schedease.services.snapshot import build_conflict_service

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = (
    "course_id",
    "instructor_id",
    "room_id",
    "day_of_week",
    "start_time",
    "end_time",
    "term",
    "year",
    "academic_year",
    "schedule_date",
)


def load_references(db: Session, course_id: str, instructor_id: str, room_id: str) -> tuple[Course, Instructor, Room]:
    course = db.get(Course, course_id)
    if course is None:
        raise ResourceNotFoundError("Course", course_id)
    instructor = db.get(Instructor, instructor_id)
    if instructor is None:
        raise ResourceNotFoundError("Instructor", instructor_id)
    room = db.get(Room, room_id)
    if room is None:
        raise ResourceNotFoundError("Room", room_id)
    return course, instructor, room


def candidate_slot(payload: ScheduleCreate, course: Course, *, schedule_id: str | None = None) -> SlotRecord:
    return SlotRecord(
        id=schedule_id,
        course_id=course.id,
        course_code=course.code,
        instructor_id=payload.instructor_id,
        room_id=payload.room_id,
        year_level=course.year_level,
        section=course.section,
        day_of_week=payload.day_of_week,
        start=parse_time_to_minutes(payload.start_time),
        end=parse_time_to_minutes(payload.end_time),
        term=payload.term,
        year=payload.year,
        schedule_date=payload.schedule_date,
        required_capacity=course.required_capacity,
        required_equipment=frozenset(course.required_equipment or []),
    )


def apply_display_fields(schedule: Schedule, course: Course, instructor: Instructor, room: Room) -> None:
    schedule.course_code = course.code
    schedule.course_name = course.name
    schedule.instructor_name = instructor.name
    schedule.room_name = room.name
    schedule.building = room.building
    schedule.year_level = course.year_level
    schedule.section = course.section


def detect_for_payload(
    db: Session,
    payload: ScheduleCreate,
    course: Course,
    *,
    exclude_id: str | None = None,
) -> list[str]:
    if not get_settings().conflict_detection_enabled:
        return []
    service = build_conflict_service(db, term=payload.term, year=payload.year)
    return service.detect(candidate_slot(payload, course, schedule_id=exclude_id), exclude_id=exclude_id)


def check_schedule(db: Session, payload: ScheduleCreate, *, exclude_id: str | None = None) -> list[str]:
    course, _, _ = load_references(db, payload.course_id, payload.instructor_id, payload.room_id)
    return detect_for_payload(db, payload, course, exclude_id=exclude_id)


def _assign_slot(schedule: Schedule, payload: ScheduleCreate, conflicts: list[str]) -> None:
    for field_name in WRITABLE_FIELDS:
        setattr(schedule, field_name, getattr(payload, field_name))
    schedule.academic_year = payload.academic_year or academic_year_label(payload.year)
    schedule.occurrence_key = payload.schedule_date.isoformat() if payload.schedule_date else WEEKLY_OCCURRENCE
    schedule.status = ScheduleStatus.conflict if conflicts else ScheduleStatus.published
    schedule.conflicts = list(conflicts)


def _record_override(db: Session, schedule: Schedule, conflicts: list[str], *, actor: str | None, action: str) -> None:
    logger.warning(
        "Schedule %s force-saved with %d conflict(s) by %s",
        schedule.id,
        len(conflicts),
        actor or "unknown",
    )
    log_activity(
        db,
        actor=actor,
        action=action,
        entity_type="schedule",
        entity_id=schedule.id,
        details={"conflicts": list(conflicts)},
    )


def _finish(db: Session, schedule: Schedule, *, commit: bool, context: str) -> None:
    if not commit:
        db.flush()
        return
    commit_or_raise(db, context=context)
    db.refresh(schedule)


def create_schedule(
    db: Session,
    payload: ScheduleCreate,
    *,
    force: bool = False,
    actor: str | None = None,
    commit: bool = True,
) -> tuple[Schedule, list[str]]:
    """Validate, detect and persist a new schedule.

    Clean slots are published. Conflicting slots raise ``ScheduleConflictError``
    unless ``force`` is set, in which case they are stored with status=conflict
    and the override is written to the activity log. With ``commit=False`` the
    row is only flushed and the caller owns the transaction.
    """
    course, instructor, room = load_references(db, payload.course_id, payload.instructor_id, payload.room_id)
    conflicts = detect_for_payload(db, payload, course)
    if conflicts and not force:
        raise ScheduleConflictError(conflicts)

    schedule = Schedule(id=str(uuid.uuid4()))
    _assign_slot(schedule, payload, conflicts)
    apply_display_fields(schedule, course, instructor, room)
    db.add(schedule)
    if conflicts:
        _record_override(db, schedule, conflicts, actor=actor, action="schedule.force_create")
    _finish(db, schedule, commit=commit, context="schedule create")
    return schedule, conflicts


def merge_update(schedule: Schedule, payload: ScheduleUpdate) -> ScheduleCreate:
    merged = {field_name: getattr(schedule, field_name) for field_name in WRITABLE_FIELDS}
    merged.update(payload.model_dump(exclude_unset=True))
    try:
        return ScheduleCreate.model_validate(merged)
    except ValidationError as exc:
        raise InputValidationError(
            "Updated schedule is invalid",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        ) from exc


def update_schedule(
    db: Session,
    schedule_id: str,
    payload: ScheduleUpdate,
    *,
    force: bool = False,
    actor: str | None = None,
    commit: bool = True,
) -> tuple[Schedule, list[str]]:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    if schedule.status == ScheduleStatus.canceled:
        raise InputValidationError("Canceled schedules cannot be updated")

    merged = merge_update(schedule, payload)
    course, instructor, room = load_references(db, merged.course_id, merged.instructor_id, merged.room_id)
    conflicts = detect_for_payload(db, merged, course, exclude_id=schedule.id)
    if conflicts and not force:
        raise ScheduleConflictError(conflicts)

    _assign_slot(schedule, merged, conflicts)
    apply_display_fields(schedule, course, instructor, room)
    if conflicts:
        _record_override(db, schedule, conflicts, actor=actor, action="schedule.force_update")
    _finish(db, schedule, commit=commit, context="schedule update")
    return schedule, conflicts


def cancel_schedule(db: Session, schedule_id: str, *, actor: str | None = None) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    if schedule.status != ScheduleStatus.canceled:
        schedule.status = ScheduleStatus.canceled
        log_activity(db, actor=actor, action="schedule.cancel", entity_type="schedule", entity_id=schedule.id)
        commit_or_raise(db, context="schedule cancel")
        db.refresh(schedule)
    return schedule
