import os

os.environ.setdefault("SCHEDEASE_DATABASE_URL", "sqlite+pysqlite://")

import uuid  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from schedease.api.deps import get_db  # noqa: E402
from schedease.db.base import Base  # noqa: E402
from schedease.main import app  # noqa: E402
from schedease.models import (  # noqa: E402
    Course,
    CourseKind,
    Instructor,
    Room,
    RoomKind,
    Schedule,
    ScheduleStatus,
    Student,
)
from schedease.schemas.settings import academic_year_label  # noqa: E402

TERM = "First Term"
YEAR = 2024


@pytest.fixture()
def engine():
    # One shared in-memory database for the app sessions and the test session.
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


class Factory:
    """Writes catalog rows straight through the session; those have no API of their own."""

    def __init__(self, db):
        self.db = db

    def _save(self, item):
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def room(self, name="Room 101", *, kind=RoomKind.classroom, capacity=40, equipment=None, **extra):
        return self._save(
            Room(
                id=str(uuid.uuid4()),
                name=name,
                kind=kind,
                capacity=capacity,
                building=extra.pop("building", "Main Building"),
                equipment=list(equipment or []),
                **extra,
            )
        )

    def instructor(self, name="Prof X", *, max_hours_per_week=20, availability=None, specializations=None, **extra):
        return self._save(
            Instructor(
                id=str(uuid.uuid4()),
                name=name,
                department=extra.pop("department", "Computer Science"),
                max_hours_per_week=max_hours_per_week,
                availability=availability or {},
                specializations=list(specializations or []),
                **extra,
            )
        )

    def course(
        self,
        code="CS101",
        *,
        kind=CourseKind.lecture,
        duration_minutes=90,
        required_capacity=40,
        year_level=1,
        section="A",
        term=TERM,
        **extra,
    ):
        return self._save(
            Course(
                id=str(uuid.uuid4()),
                code=code,
                name=extra.pop("name", f"{code} course"),
                department=extra.pop("department", "Computer Science"),
                credits=extra.pop("credits", 3),
                kind=kind,
                duration_minutes=duration_minutes,
                required_capacity=required_capacity,
                required_equipment=list(extra.pop("required_equipment", [])),
                year_level=year_level,
                section=section,
                term=term,
                **extra,
            )
        )

    def student(self, name="Student One", *, year_level=1, section="A", **extra):
        return self._save(
            Student(
                id=str(uuid.uuid4()),
                student_number=extra.pop("student_number", str(uuid.uuid4())[:12]),
                name=name,
                department=extra.pop("department", "Computer Science"),
                year_level=year_level,
                section=section,
            )
        )

    def schedule(
        self,
        course,
        instructor,
        room,
        *,
        day="Monday",
        start="10:00",
        end="11:30",
        term=TERM,
        year=YEAR,
        status=ScheduleStatus.published,
        schedule_date=None,
    ):
        return self._save(
            Schedule(
                id=str(uuid.uuid4()),
                course_id=course.id,
                instructor_id=instructor.id,
                room_id=room.id,
                day_of_week=day,
                start_time=start,
                end_time=end,
                term=term,
                year=year,
                academic_year=academic_year_label(year),
                status=status,
                conflicts=[],
                schedule_date=schedule_date,
                occurrence_key=schedule_date.isoformat() if schedule_date else "weekly",
                borrowed_instances=[],
                course_code=course.code,
                course_name=course.name,
                instructor_name=instructor.name,
                room_name=room.name,
                building=room.building,
                year_level=course.year_level,
                section=course.section,
            )
        )


@pytest.fixture()
def make(db_session):
    return Factory(db_session)
