import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from schedease.db.base import Base


class Instructor(Base):
    __tablename__ = "instructors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)
    department: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    max_hours_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    specializations: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # {"Monday": [{"start_time": "08:00", "end_time": "12:00"}, ...]}
    availability: Mapped[dict[str, list[dict]]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
