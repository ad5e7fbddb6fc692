import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from schedease.db.base import Base


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", "schedule_id", name="uq_enrollments_student_course_schedule"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    schedule_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    instructor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    term: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    student_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    course_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    course_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    section: Mapped[str | None] = mapped_column(String(20), nullable=True)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
