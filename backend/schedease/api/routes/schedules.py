from collections.abc import Callable

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from schedease.api.deps import get_db, get_disconnect_check
from schedease.core.config import get_settings
from schedease.core.exceptions import InputValidationError, ResourceNotFoundError
from schedease.models.schedule import Schedule, ScheduleStatus
from schedease.schemas.conflict import ConflictReport
from schedease.schemas.generator import GenerateScheduleRequest, GenerationStats
from schedease.schemas.schedule import ConflictCheckResponse, ScheduleCreate, ScheduleOut, ScheduleUpdate
from schedease.schemas.settings import validate_term_value
from schedease.services.auto_generator import AutoScheduleGenerator
from schedease.services.schedule_writer import cancel_schedule, check_schedule, create_schedule, update_schedule
from schedease.services.snapshot import build_conflict_service

router = APIRouter()


@router.get("/", response_model=list[ScheduleOut])
def list_schedules(
    term: str | None = Query(default=None),
    year: int | None = Query(default=None),
    status_filter: ScheduleStatus | None = Query(default=None, alias="status"),
    instructor_id: str | None = Query(default=None),
    room_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[ScheduleOut]:
    query = select(Schedule)
    if term is not None:
        query = query.where(Schedule.term == term)
    if year is not None:
        query = query.where(Schedule.year == year)
    if status_filter is not None:
        query = query.where(Schedule.status == status_filter)
    if instructor_id is not None:
        query = query.where(Schedule.instructor_id == instructor_id)
    if room_id is not None:
        query = query.where(Schedule.room_id == room_id)
    query = query.order_by(Schedule.day_of_week, Schedule.start_time, Schedule.id)
    return list(db.execute(query).scalars())


@router.post("/", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule_route(
    payload: ScheduleCreate,
    force: bool = Query(default=False),
    actor: str | None = Header(default=None, alias="X-Actor"),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule, _ = create_schedule(db, payload, force=force, actor=actor)
    return schedule


@router.post("/check", response_model=ConflictCheckResponse)
def check_schedule_route(
    payload: ScheduleCreate,
    exclude_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ConflictCheckResponse:
    conflicts = check_schedule(db, payload, exclude_id=exclude_id)
    return ConflictCheckResponse(conflicts=conflicts, has_conflicts=bool(conflicts))


@router.get("/conflicts", response_model=ConflictReport)
def audit_conflicts(
    term: str = Query(...),
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
) -> ConflictReport:
    try:
        term = validate_term_value(term)
    except ValueError as exc:
        raise InputValidationError(str(exc)) from exc
    return build_conflict_service(db, term=term, year=year).audit(term=term, year=year)


@router.post("/auto-generate", response_model=GenerationStats)
def auto_generate(
    payload: GenerateScheduleRequest,
    db: Session = Depends(get_db),
    client_disconnected: Callable[[], bool] = Depends(get_disconnect_check),
) -> GenerationStats:
    # A closed connection aborts the run before anything is persisted.
    return AutoScheduleGenerator(db, get_settings(), should_cancel=client_disconnected).run(payload)


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(schedule_id: str, db: Session = Depends(get_db)) -> ScheduleOut:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ResourceNotFoundError("Schedule", schedule_id)
    return schedule


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_schedule_route(
    schedule_id: str,
    payload: ScheduleUpdate,
    force: bool = Query(default=False),
    actor: str | None = Header(default=None, alias="X-Actor"),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    schedule, _ = update_schedule(db, schedule_id, payload, force=force, actor=actor)
    return schedule


@router.delete("/{schedule_id}", response_model=ScheduleOut)
def cancel_schedule_route(
    schedule_id: str,
    actor: str | None = Header(default=None, alias="X-Actor"),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return cancel_schedule(db, schedule_id, actor=actor)
