"""Schedule request lifecycle, including the borrow-a-colleague's-slot workflow.

Requests are observations: creation runs the conflict detector for the
requested slot and records the outcome but never blocks. Approval is where
side effects happen, and every side effect of a borrow approval is guarded so
that re-running it after a partial failure completes the missing steps only.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from schedease.core.config import get_settings
from schedease.core.exceptions import InputValidationError, RequestStateError, ResourceNotFoundError
from schedease.db.transactions import commit_or_raise
from schedease.models.course import Course
from schedease.models.instructor import Instructor
from schedease.models.room import Room
from schedease.models.schedule import Schedule, ScheduleStatus
from schedease.models.schedule_request import RequestStatus, RequestType, ScheduleRequest
from schedease.schemas.schedule import ScheduleCreate, ScheduleUpdate
from schedease.schemas.schedule_request import RequestDecision, ScheduleRequestCreate
from schedease.schemas.settings import academic_year_label, parse_time_to_minutes
from schedease.services.audit import log_activity
from schedease.services.conflict_service import SlotRecord, weekday_name
from schedease.services.schedule_writer import apply_display_fields, create_schedule, load_references, update_schedule
from schedease.services.snapshot import build_conflict_service

logger = logging.getLogger(__name__)

DEFAULT_DETAILS = {
    RequestType.room_change: "Room change request",
    RequestType.time_change: "Time change request",
    RequestType.schedule_conflict: "Schedule conflict report",
    RequestType.borrow_schedule: "Borrow schedule request",
}


def _get_or_404(db: Session, model, resource_type: str, resource_id: str):
    item = db.get(model, resource_id)
    if item is None:
        raise ResourceNotFoundError(resource_type, resource_id)
    return item


def get_request(db: Session, request_id: str) -> ScheduleRequest:
    return _get_or_404(db, ScheduleRequest, "ScheduleRequest", request_id)


def list_requests(
    db: Session,
    *,
    status: RequestStatus | None = None,
    instructor_id: str | None = None,
    request_type: RequestType | None = None,
) -> list[ScheduleRequest]:
    query = select(ScheduleRequest)
    if status is not None:
        query = query.where(ScheduleRequest.status == status)
    if instructor_id is not None:
        query = query.where(ScheduleRequest.instructor_id == instructor_id)
    if request_type is not None:
        query = query.where(ScheduleRequest.request_type == request_type)
    query = query.order_by(ScheduleRequest.created_at.desc(), ScheduleRequest.id)
    return list(db.execute(query).scalars())


def _prepare_borrow(db: Session, request: ScheduleRequest, payload: ScheduleRequestCreate) -> None:
    if not payload.schedule_id or payload.request_date is None:
        raise InputValidationError("Borrow requests require schedule_id and date")
    source = _get_or_404(db, Schedule, "Schedule", payload.schedule_id)
    if source.status == ScheduleStatus.canceled:
        raise InputValidationError("Canceled schedules cannot be borrowed")
    if source.is_borrowed_instance or source.schedule_date is not None:
        raise InputValidationError("Only recurring schedules can be borrowed")
    if source.instructor_id == request.instructor_id:
        raise InputValidationError("Instructors cannot borrow their own schedule")
    requested_day = weekday_name(payload.request_date)
    if requested_day != source.day_of_week:
        raise InputValidationError(
            f"Borrow date {payload.request_date.isoformat()} is a {requested_day}; "
            f"the schedule meets on {source.day_of_week}"
        )

    request.schedule_id = source.id
    request.request_date = payload.request_date
    request.course_id = source.course_id
    request.room_id = source.room_id
    request.day_of_week = source.day_of_week
    request.start_time = source.start_time
    request.end_time = source.end_time
    request.term = source.term
    request.year = source.year
    request.course_code = source.course_code
    request.course_name = source.course_name
    request.room_name = source.room_name
    request.original_instructor_id = source.instructor_id
    request.original_instructor_name = source.instructor_name


def _prepare_change(db: Session, request: ScheduleRequest, payload: ScheduleRequestCreate) -> None:
    source = _get_or_404(db, Schedule, "Schedule", payload.schedule_id) if payload.schedule_id else None

    def pick(field_name: str):
        value = getattr(payload, field_name)
        if value is None and source is not None:
            return getattr(source, field_name)
        return value

    request.schedule_id = payload.schedule_id
    request.request_date = payload.request_date
    request.course_id = pick("course_id")
    request.room_id = pick("room_id")
    request.start_time = pick("start_time")
    request.end_time = pick("end_time")
    request.term = pick("term")
    request.year = pick("year")
    if payload.request_date is not None:
        request.day_of_week = weekday_name(payload.request_date)
    else:
        request.day_of_week = pick("day_of_week")

    if not (request.day_of_week and request.start_time and request.end_time):
        raise InputValidationError("A date or day of week plus start and end times are required")
    if parse_time_to_minutes(request.end_time) <= parse_time_to_minutes(request.start_time):
        raise InputValidationError("end_time must be after start_time")

    if request.course_id:
        course = _get_or_404(db, Course, "Course", request.course_id)
        request.course_code, request.course_name = course.code, course.name
    if request.room_id:
        request.room_name = _get_or_404(db, Room, "Room", request.room_id).name
    if source is not None:
        request.original_instructor_id = source.instructor_id
        request.original_instructor_name = source.instructor_name


def _requested_slot(request: ScheduleRequest, course: Course) -> SlotRecord:
    return SlotRecord(
        id=None,
        course_id=course.id,
        course_code=course.code,
        instructor_id=request.instructor_id,
        room_id=request.room_id,
        year_level=course.year_level,
        section=course.section,
        day_of_week=request.day_of_week,
        start=parse_time_to_minutes(request.start_time),
        end=parse_time_to_minutes(request.end_time),
        term=request.term,
        year=request.year,
        schedule_date=request.request_date,
        required_capacity=course.required_capacity,
        required_equipment=frozenset(course.required_equipment or []),
    )


def detect_request_conflicts(db: Session, request: ScheduleRequest) -> list[str]:
    """Conflicts of the requested slot with the requesting instructor substituted in.

    The schedule the request refers to is excluded: a borrowed date replaces the
    source meeting and a change request replaces the row being changed.
    """
    if not get_settings().conflict_detection_enabled:
        return []
    if not (request.course_id and request.room_id and request.term and request.year):
        return []
    course = db.get(Course, request.course_id)
    if course is None:
        return []
    service = build_conflict_service(db, term=request.term, year=request.year)
    return service.detect(_requested_slot(request, course), exclude_id=request.schedule_id)


def create_request(db: Session, payload: ScheduleRequestCreate) -> ScheduleRequest:
    instructor = _get_or_404(db, Instructor, "Instructor", payload.instructor_id)
    request = ScheduleRequest(
        id=str(uuid.uuid4()),
        instructor_id=instructor.id,
        instructor_name=instructor.name,
        request_type=payload.request_type,
        purpose=payload.purpose,
        notes=payload.notes,
        details=payload.details or DEFAULT_DETAILS[payload.request_type],
        status=RequestStatus.pending,
    )
    if payload.request_type == RequestType.borrow_schedule:
        _prepare_borrow(db, request, payload)
    else:
        _prepare_change(db, request, payload)

    conflicts = detect_request_conflicts(db, request)
    request.conflict_flag = bool(conflicts)
    request.conflicts = conflicts
    db.add(request)
    commit_or_raise(db, context="schedule request create")
    db.refresh(request)
    logger.info(
        "Schedule request %s (%s) created by %s with %d conflict(s)",
        request.id,
        request.request_type.value,
        instructor.name,
        len(conflicts),
    )
    return request


def review_request(db: Session, request_id: str, decision: RequestDecision | None = None) -> ScheduleRequest:
    request = get_request(db, request_id)
    if request.status == RequestStatus.under_review:
        return request
    if request.status != RequestStatus.pending:
        raise RequestStateError(
            f"Request is {request.status.value} and cannot be put under review",
            details={"status": request.status.value},
        )
    request.status = RequestStatus.under_review
    if decision is not None and decision.reviewer_notes:
        request.reviewer_notes = decision.reviewer_notes
    log_activity(
        db,
        actor=decision.actor if decision else None,
        action="schedule_request.review",
        entity_type="schedule_request",
        entity_id=request.id,
    )
    commit_or_raise(db, context="schedule request review")
    db.refresh(request)
    return request


def reject_request(db: Session, request_id: str, decision: RequestDecision | None = None) -> ScheduleRequest:
    request = get_request(db, request_id)
    if request.status == RequestStatus.rejected:
        return request
    if request.status == RequestStatus.approved:
        raise RequestStateError("Approved requests cannot be rejected", details={"status": request.status.value})

    request.status = RequestStatus.rejected
    request.reviewed_at = datetime.now(timezone.utc)
    if decision is not None and decision.reviewer_notes:
        request.reviewer_notes = decision.reviewer_notes
    log_activity(
        db,
        actor=decision.actor if decision else None,
        action="schedule_request.reject",
        entity_type="schedule_request",
        entity_id=request.id,
    )
    commit_or_raise(db, context="schedule request reject")
    db.refresh(request)
    return request


def find_borrowed_instance(db: Session, request_id: str) -> Schedule | None:
    return db.execute(select(Schedule).where(Schedule.borrow_request_id == request_id)).scalar_one_or_none()


def _create_borrowed_instance(db: Session, request: ScheduleRequest, source: Schedule, actor: str | None) -> Schedule:
    if source.status == ScheduleStatus.canceled:
        raise InputValidationError("The borrowed schedule has been canceled")
    course, instructor, room = load_references(db, source.course_id, request.instructor_id, source.room_id)

    conflicts: list[str] = []
    if get_settings().conflict_detection_enabled:
        service = build_conflict_service(db, term=source.term, year=source.year)
        conflicts = service.detect(_requested_slot(request, course), exclude_id=source.id)

    derived = Schedule(
        id=str(uuid.uuid4()),
        course_id=source.course_id,
        instructor_id=instructor.id,
        room_id=source.room_id,
        day_of_week=source.day_of_week,
        start_time=source.start_time,
        end_time=source.end_time,
        term=source.term,
        year=source.year,
        academic_year=source.academic_year or academic_year_label(source.year),
        status=ScheduleStatus.conflict if conflicts else ScheduleStatus.published,
        conflicts=conflicts,
        schedule_date=request.request_date,
        occurrence_key=request.request_date.isoformat(),
        is_borrowed_instance=True,
        source_schedule_id=source.id,
        borrow_request_id=request.id,
        borrow_original_instructor_id=source.instructor_id,
        borrow_original_instructor_name=source.instructor_name,
        borrow_date=request.request_date,
        borrowed_instances=[],
    )
    apply_display_fields(derived, course, instructor, room)
    db.add(derived)
    log_activity(
        db,
        actor=actor,
        action="schedule.borrow_instance",
        entity_type="schedule",
        entity_id=derived.id,
        details={"source_schedule_id": source.id, "request_id": request.id, "conflicts": conflicts},
    )
    commit_or_raise(db, context="borrowed instance create")
    if conflicts:
        logger.warning("Borrowed instance %s saved with %d conflict(s)", derived.id, len(conflicts))
    return derived


def _approve_borrow(db: Session, request: ScheduleRequest, actor: str | None) -> None:
    source = _get_or_404(db, Schedule, "Schedule", request.schedule_id)

    derived = find_borrowed_instance(db, request.id)
    if derived is None:
        derived = _create_borrowed_instance(db, request, source, actor)

    entries = list(source.borrowed_instances or [])
    if not any(entry.get("request_id") == request.id for entry in entries):
        entries.append(
            {
                "date": request.request_date.isoformat(),
                "request_id": request.id,
                "replacement_instructor_id": request.instructor_id,
                "replacement_instructor_name": request.instructor_name,
            }
        )
        # Reassign so the JSON column is flagged dirty.
        source.borrowed_instances = entries
    request.created_schedule_id = derived.id


def _is_bookable(request: ScheduleRequest) -> bool:
    return bool(
        request.course_id
        and request.room_id
        and request.day_of_week
        and request.start_time
        and request.end_time
        and request.term
        and request.year
    )


def _approve_change(db: Session, request: ScheduleRequest, actor: str | None) -> None:
    if request.request_type == RequestType.schedule_conflict:
        return
    if request.created_schedule_id is not None or not _is_bookable(request):
        return

    if request.schedule_id and request.request_date is None:
        schedule, _ = update_schedule(
            db,
            request.schedule_id,
            ScheduleUpdate(
                instructor_id=request.instructor_id,
                room_id=request.room_id,
                day_of_week=request.day_of_week,
                start_time=request.start_time,
                end_time=request.end_time,
            ),
            force=True,
            actor=actor,
            commit=False,
        )
    else:
        schedule, _ = create_schedule(
            db,
            ScheduleCreate(
                course_id=request.course_id,
                instructor_id=request.instructor_id,
                room_id=request.room_id,
                day_of_week=request.day_of_week,
                start_time=request.start_time,
                end_time=request.end_time,
                term=request.term,
                year=request.year,
                schedule_date=request.request_date,
            ),
            force=True,
            actor=actor,
            commit=False,
        )
    # Committed together with the approval so a retry never books the slot twice.
    request.created_schedule_id = schedule.id


def approve_request(db: Session, request_id: str, decision: RequestDecision | None = None) -> ScheduleRequest:
    request = get_request(db, request_id)
    if request.status == RequestStatus.approved:
        logger.info("Schedule request %s already approved; nothing to do", request.id)
        return request
    if request.status == RequestStatus.rejected:
        raise RequestStateError("Rejected requests cannot be approved", details={"status": request.status.value})

    actor = decision.actor if decision else None
    if request.request_type == RequestType.borrow_schedule:
        _approve_borrow(db, request, actor)
    else:
        _approve_change(db, request, actor)

    request.status = RequestStatus.approved
    request.reviewed_at = datetime.now(timezone.utc)
    if decision is not None and decision.reviewer_notes:
        request.reviewer_notes = decision.reviewer_notes
    log_activity(
        db,
        actor=actor,
        action="schedule_request.approve",
        entity_type="schedule_request",
        entity_id=request.id,
        details={"created_schedule_id": request.created_schedule_id},
    )
    commit_or_raise(db, context="schedule request approve")
    db.refresh(request)
    logger.info("Schedule request %s approved", request.id)
    return request
