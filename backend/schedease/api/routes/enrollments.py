from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from schedease.api.deps import get_db
from schedease.schemas.enrollment import EnrollmentCreate, EnrollmentOut, EnrollmentResult
from schedease.services.enrollment_service import enroll_students, list_enrollments, remove_enrollment

router = APIRouter()


@router.get("/", response_model=list[EnrollmentOut])
def list_enrollments_route(
    schedule_id: str | None = Query(default=None),
    student_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[EnrollmentOut]:
    return list_enrollments(db, schedule_id=schedule_id, student_id=student_id)


@router.post("/", response_model=EnrollmentResult, status_code=status.HTTP_201_CREATED)
def enroll(payload: EnrollmentCreate, db: Session = Depends(get_db)) -> EnrollmentResult:
    return enroll_students(db, payload)


@router.delete("/{enrollment_id}")
def delete_enrollment(
    enrollment_id: str,
    actor: str | None = Header(default=None, alias="X-Actor"),
    db: Session = Depends(get_db),
) -> dict:
    remove_enrollment(db, enrollment_id, actor=actor)
    return {"success": True}
