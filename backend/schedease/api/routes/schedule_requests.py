from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from schedease.api.deps import get_db
from schedease.models.schedule_request import RequestStatus, RequestType
from schedease.schemas.schedule_request import RequestDecision, ScheduleRequestCreate, ScheduleRequestOut
from schedease.services import schedule_requests as service

router = APIRouter()


@router.get("/", response_model=list[ScheduleRequestOut])
def list_schedule_requests(
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    instructor_id: str | None = Query(default=None),
    request_type: RequestType | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[ScheduleRequestOut]:
    return service.list_requests(db, status=status_filter, instructor_id=instructor_id, request_type=request_type)


@router.post("/", response_model=ScheduleRequestOut, status_code=status.HTTP_201_CREATED)
def create_schedule_request(payload: ScheduleRequestCreate, db: Session = Depends(get_db)) -> ScheduleRequestOut:
    return service.create_request(db, payload)


@router.get("/{request_id}", response_model=ScheduleRequestOut)
def get_schedule_request(request_id: str, db: Session = Depends(get_db)) -> ScheduleRequestOut:
    return service.get_request(db, request_id)


@router.post("/{request_id}/review", response_model=ScheduleRequestOut)
def review_schedule_request(
    request_id: str,
    payload: RequestDecision | None = None,
    db: Session = Depends(get_db),
) -> ScheduleRequestOut:
    return service.review_request(db, request_id, payload)


@router.post("/{request_id}/approve", response_model=ScheduleRequestOut)
def approve_schedule_request(
    request_id: str,
    payload: RequestDecision | None = None,
    db: Session = Depends(get_db),
) -> ScheduleRequestOut:
    return service.approve_request(db, request_id, payload)


@router.post("/{request_id}/reject", response_model=ScheduleRequestOut)
def reject_schedule_request(
    request_id: str,
    payload: RequestDecision | None = None,
    db: Session = Depends(get_db),
) -> ScheduleRequestOut:
    return service.reject_request(db, request_id, payload)
