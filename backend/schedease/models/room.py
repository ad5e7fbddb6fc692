import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from schedease.db.base import Base


class RoomKind(str, Enum):
    classroom = "classroom"
    laboratory = "laboratory"
    computer_lab = "computer_lab"
    auditorium = "auditorium"


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    kind: Mapped[RoomKind] = mapped_column(SAEnum(RoomKind, name="room_kind"), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    building: Mapped[str] = mapped_column(String(200), nullable=False, default="Main Building")
    floor: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    equipment: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
