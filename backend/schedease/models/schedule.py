import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, Index, Integer, JSON, String, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from schedease.db.base import Base

WEEKLY_OCCURRENCE = "weekly"
PUBLISHED_ONLY = text("status = 'published'")


class ScheduleStatus(str, Enum):
    draft = "draft"
    published = "published"
    conflict = "conflict"
    canceled = "canceled"


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        # Storage backstop for concurrent writers that both validated against a stale snapshot.
        Index(
            "uq_schedules_room_slot",
            "room_id",
            "day_of_week",
            "occurrence_key",
            "start_time",
            "term",
            "year",
            unique=True,
            sqlite_where=PUBLISHED_ONLY,
            postgresql_where=PUBLISHED_ONLY,
        ),
        Index(
            "uq_schedules_instructor_slot",
            "instructor_id",
            "day_of_week",
            "occurrence_key",
            "start_time",
            "term",
            "year",
            unique=True,
            sqlite_where=PUBLISHED_ONLY,
            postgresql_where=PUBLISHED_ONLY,
        ),
        Index("ix_schedules_term_year", "term", "year"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    instructor_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    room_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    term: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"),
        nullable=False,
        default=ScheduleStatus.published,
    )
    conflicts: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    schedule_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    occurrence_key: Mapped[str] = mapped_column(String(10), nullable=False, default=WEEKLY_OCCURRENCE)
    first_meeting_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    is_borrowed_instance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source_schedule_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    borrow_request_id: Mapped[str | None] = mapped_column(String(36), unique=True, nullable=True)
    borrow_original_instructor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    borrow_original_instructor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    borrow_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # [{"date", "request_id", "replacement_instructor_id", "replacement_instructor_name"}]
    borrowed_instances: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)

    course_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    course_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    instructor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    room_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    building: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    section: Mapped[str | None] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
