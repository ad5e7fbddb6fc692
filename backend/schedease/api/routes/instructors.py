from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from schedease.api.deps import get_db
from schedease.core.exceptions import ResourceNotFoundError
from schedease.db.transactions import commit_or_raise
from schedease.models.instructor import Instructor
from schedease.schemas.instructor import InstructorAvailability, InstructorOut
from schedease.services.audit import log_activity

router = APIRouter()


@router.get("/", response_model=list[InstructorOut])
def list_instructors(db: Session = Depends(get_db)) -> list[InstructorOut]:
    return list(db.execute(select(Instructor).order_by(Instructor.name)).scalars())


@router.put("/{instructor_id}/availability", response_model=InstructorOut)
def update_availability(
    instructor_id: str,
    payload: InstructorAvailability,
    db: Session = Depends(get_db),
) -> InstructorOut:
    instructor = db.get(Instructor, instructor_id)
    if instructor is None:
        raise ResourceNotFoundError("Instructor", instructor_id)
    instructor.availability = payload.to_storage()
    log_activity(
        db,
        actor=None,
        action="instructor.availability.update",
        entity_type="instructor",
        entity_id=instructor.id,
        details={"days": sorted(instructor.availability)},
    )
    commit_or_raise(db, context="availability update")
    db.refresh(instructor)
    return instructor
