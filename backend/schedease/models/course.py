import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from schedease.db.base import Base


class CourseKind(str, Enum):
    lecture = "lecture"
    lab = "lab"
    seminar = "seminar"


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (
        UniqueConstraint("code", "term", "year_level", "section", name="uq_courses_offering"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str] = mapped_column(String(200), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    kind: Mapped[CourseKind] = mapped_column(SAEnum(CourseKind, name="course_kind"), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=90)
    required_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    required_equipment: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    year_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    section: Mapped[str] = mapped_column(String(20), nullable=False, default="A")
    term: Mapped[str] = mapped_column(String(50), index=True, nullable=False)
    instructor_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def section_key(self) -> str:
        return f"{self.year_level}{self.section}"
