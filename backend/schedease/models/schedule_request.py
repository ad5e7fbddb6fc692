import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from schedease.db.base import Base


class RequestType(str, Enum):
    room_change = "room_change"
    time_change = "time_change"
    schedule_conflict = "schedule_conflict"
    borrow_schedule = "borrow_schedule"


class RequestStatus(str, Enum):
    pending = "pending"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"


class RequestPurpose(str, Enum):
    make_up_class = "make-up class"
    quiz = "quiz"
    unit_test = "unit test"


class ScheduleRequest(Base):
    __tablename__ = "schedule_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instructor_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    request_type: Mapped[RequestType] = mapped_column(SAEnum(RequestType, name="request_type"), nullable=False)
    course_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    schedule_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    room_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    request_date: Mapped[date | None] = mapped_column("date", Date, nullable=True)
    day_of_week: Mapped[str | None] = mapped_column(String(10), nullable=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    term: Mapped[str | None] = mapped_column(String(50), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    purpose: Mapped[RequestPurpose | None] = mapped_column(
        SAEnum(RequestPurpose, name="request_purpose", values_callable=lambda items: [item.value for item in items]),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="Schedule change request")
    status: Mapped[RequestStatus] = mapped_column(
        SAEnum(RequestStatus, name="request_status"),
        index=True,
        nullable=False,
        default=RequestStatus.pending,
    )
    conflict_flag: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    conflicts: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    instructor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    course_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    course_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    room_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    original_instructor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    original_instructor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    reviewer_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_schedule_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
