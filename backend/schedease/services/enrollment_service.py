from __future__ import annotations

from collections import defaultdict
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from schedease.core.config import get_settings
from schedease.core.exceptions import InputValidationError, ResourceNotFoundError
from schedease.db.transactions import commit_or_raise
from schedease.models.course import Course
from schedease.models.enrollment import Enrollment
from schedease.models.schedule import Schedule, ScheduleStatus
from schedease.models.student import Student
from schedease.schemas.enrollment import EnrollmentConflict, EnrollmentCreate, EnrollmentOut, EnrollmentResult
from schedease.schemas.settings import parse_time_to_minutes
from schedease.services.audit import log_activity
from schedease.services.conflict_service import occurs_same_day, ranges_overlap

logger = logging.getLogger(__name__)


def _target_schedule(db: Session, payload: EnrollmentCreate) -> tuple[Schedule, Course]:
    schedule = db.get(Schedule, payload.schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", payload.schedule_id)
    if schedule.status == ScheduleStatus.canceled:
        raise InputValidationError("Cannot enroll students in a canceled schedule")
    if payload.course_id is not None and payload.course_id != schedule.course_id:
        raise InputValidationError("course_id does not match the schedule's course")
    if payload.instructor_id is not None and payload.instructor_id != schedule.instructor_id:
        raise InputValidationError("instructor_id does not match the schedule's instructor")
    course = db.get(Course, schedule.course_id)
    if course is None:
        raise ResourceNotFoundError("Course", schedule.course_id)
    return schedule, course


def _resolve_students(db: Session, payload: EnrollmentCreate) -> list[tuple[str, Student | None]]:
    if payload.students:
        student_ids = list(dict.fromkeys(payload.students))
        found = {item.id: item for item in db.execute(select(Student).where(Student.id.in_(student_ids))).scalars()}
        return [(student_id, found.get(student_id)) for student_id in student_ids]
    query = (
        select(Student)
        .where(Student.year_level == payload.year_level, Student.section == payload.section)
        .order_by(Student.student_number)
    )
    return [(item.id, item) for item in db.execute(query).scalars()]


def list_enrollments(
    db: Session,
    *,
    schedule_id: str | None = None,
    student_id: str | None = None,
) -> list[Enrollment]:
    query = select(Enrollment)
    if schedule_id is not None:
        query = query.where(Enrollment.schedule_id == schedule_id)
    if student_id is not None:
        query = query.where(Enrollment.student_id == student_id)
    return list(db.execute(query.order_by(Enrollment.created_at, Enrollment.id)).scalars())


def enroll_students(db: Session, payload: EnrollmentCreate) -> EnrollmentResult:
    """Enroll each student independently; a conflict for one never blocks the others."""
    settings = get_settings()
    schedule, course = _target_schedule(db, payload)
    students = _resolve_students(db, payload)
    target_start = parse_time_to_minutes(schedule.start_time)
    target_end = parse_time_to_minutes(schedule.end_time)

    existing_by_student: dict[str, list[Enrollment]] = defaultdict(list)
    student_ids = [student_id for student_id, _ in students]
    if student_ids:
        for item in db.execute(
            select(Enrollment).where(
                Enrollment.student_id.in_(student_ids),
                Enrollment.term == schedule.term,
                Enrollment.year == schedule.year,
            )
        ).scalars():
            existing_by_student[item.student_id].append(item)

    related_schedule_ids = {item.schedule_id for items in existing_by_student.values() for item in items}
    schedules: dict[str, Schedule] = {}
    if related_schedule_ids:
        schedules = {
            item.id: item
            for item in db.execute(select(Schedule).where(Schedule.id.in_(related_schedule_ids))).scalars()
        }
    schedules[schedule.id] = schedule
    related_course_ids = {item.course_id for items in existing_by_student.values() for item in items}
    credits = {course.id: course.credits}
    if related_course_ids:
        credits.update(
            {item.id: item.credits for item in db.execute(select(Course).where(Course.id.in_(related_course_ids))).scalars()}
        )

    result = EnrollmentResult()
    created: list[Enrollment] = []
    for student_id, student in students:
        if student is None:
            result.conflicts.append(EnrollmentConflict(student_id=student_id, reason="Student not found"))
            continue

        active = [
            item
            for item in existing_by_student[student_id]
            if item.schedule_id in schedules and schedules[item.schedule_id].status != ScheduleStatus.canceled
        ]
        reason = None
        if any(item.course_id == schedule.course_id and item.schedule_id == schedule.id for item in active):
            reason = f"Already enrolled in {course.code} for this schedule"
        else:
            for item in active:
                other = schedules.get(item.schedule_id)
                if other is None or other.id == schedule.id:
                    continue
                if not occurs_same_day(schedule.day_of_week, schedule.schedule_date, other.day_of_week, other.schedule_date):
                    continue
                if ranges_overlap(
                    target_start,
                    target_end,
                    parse_time_to_minutes(other.start_time),
                    parse_time_to_minutes(other.end_time),
                ):
                    reason = (
                        f"Student is already enrolled in {item.course_code or other.course_code} at overlapping time "
                        f"({other.day_of_week} {other.start_time}-{other.end_time})"
                    )
                    break
        if reason is None:
            enrolled_units = sum(credits.get(course_id, 0) for course_id in {item.course_id for item in active})
            projected = enrolled_units + course.credits
            if projected > settings.max_student_units:
                reason = f"Load limit exceeded: {projected} units (max {settings.max_student_units})"

        if reason is not None:
            result.conflicts.append(EnrollmentConflict(student_id=student_id, student_name=student.name, reason=reason))
            continue

        enrollment = Enrollment(
            id=str(uuid.uuid4()),
            student_id=student.id,
            course_id=schedule.course_id,
            schedule_id=schedule.id,
            instructor_id=schedule.instructor_id,
            term=schedule.term,
            year=schedule.year,
            student_name=student.name,
            course_code=course.code,
            course_name=course.name,
            year_level=course.year_level,
            section=course.section,
            department=student.department or course.department,
        )
        db.add(enrollment)
        created.append(enrollment)
        existing_by_student[student_id].append(enrollment)

    if created:
        commit_or_raise(db, context="enrollment")
        for enrollment in created:
            db.refresh(enrollment)
    result.created = [EnrollmentOut.model_validate(item) for item in created]
    logger.info(
        "Enrollment into schedule %s: %d created, %d conflict(s)",
        schedule.id,
        len(result.created),
        len(result.conflicts),
    )
    return result


def remove_enrollment(db: Session, enrollment_id: str, *, actor: str | None = None) -> None:
    """Unenroll a student; the removed row no longer counts toward overlaps or unit load."""
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise ResourceNotFoundError("Enrollment", enrollment_id)
    student_id = enrollment.student_id
    log_activity(
        db,
        actor=actor,
        action="enrollment.delete",
        entity_type="enrollment",
        entity_id=enrollment.id,
        details={"student_id": student_id, "schedule_id": enrollment.schedule_id},
    )
    db.delete(enrollment)
    commit_or_raise(db, context="enrollment delete")
    logger.info("Enrollment %s removed (student %s)", enrollment_id, student_id)
