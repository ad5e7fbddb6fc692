"""create scheduling core tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

PUBLISHED_ONLY = sa.text("status = 'published'")


def upgrade() -> None:
    course_kind = sa.Enum("lecture", "lab", "seminar", name="course_kind")
    room_kind = sa.Enum("classroom", "laboratory", "computer_lab", "auditorium", name="room_kind")
    schedule_status = sa.Enum("draft", "published", "conflict", "canceled", name="schedule_status")
    request_type = sa.Enum(
        "room_change", "time_change", "schedule_conflict", "borrow_schedule", name="request_type"
    )
    request_status = sa.Enum("pending", "under_review", "approved", "rejected", name="request_status")
    request_purpose = sa.Enum("make-up class", "quiz", "unit test", name="request_purpose")

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("kind", course_kind, nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="90"),
        sa.Column("required_capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("required_equipment", sa.JSON(), nullable=False),
        sa.Column("year_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("section", sa.String(length=20), nullable=False, server_default="A"),
        sa.Column("term", sa.String(length=50), nullable=False),
        sa.Column("instructor_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("code", "term", "year_level", "section", name="uq_courses_offering"),
    )
    op.create_index("ix_courses_code", "courses", ["code"])
    op.create_index("ix_courses_term", "courses", ["term"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("kind", room_kind, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("building", sa.String(length=200), nullable=False, server_default="Main Building"),
        sa.Column("floor", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("equipment", sa.JSON(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "instructors",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("max_hours_per_week", sa.Integer(), nullable=False, server_default="20"),
        sa.Column("specializations", sa.JSON(), nullable=False),
        sa.Column("availability", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_instructors_email", "instructors", ["email"], unique=True)

    op.create_table(
        "students",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_number", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("year_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("section", sa.String(length=20), nullable=False, server_default="A"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_students_student_number", "students", ["student_number"], unique=True)

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("instructor_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("term", sa.String(length=50), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("status", schedule_status, nullable=False, server_default="published"),
        sa.Column("conflicts", sa.JSON(), nullable=False),
        sa.Column("schedule_date", sa.Date(), nullable=True),
        sa.Column("occurrence_key", sa.String(length=10), nullable=False, server_default="weekly"),
        sa.Column("first_meeting_date", sa.Date(), nullable=True),
        sa.Column("is_borrowed_instance", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("source_schedule_id", sa.String(length=36), nullable=True),
        sa.Column("borrow_request_id", sa.String(length=36), nullable=True),
        sa.Column("borrow_original_instructor_id", sa.String(length=36), nullable=True),
        sa.Column("borrow_original_instructor_name", sa.String(length=200), nullable=True),
        sa.Column("borrow_date", sa.Date(), nullable=True),
        sa.Column("borrowed_instances", sa.JSON(), nullable=False),
        sa.Column("course_code", sa.String(length=50), nullable=True),
        sa.Column("course_name", sa.String(length=200), nullable=True),
        sa.Column("instructor_name", sa.String(length=200), nullable=True),
        sa.Column("room_name", sa.String(length=100), nullable=True),
        sa.Column("building", sa.String(length=200), nullable=True),
        sa.Column("year_level", sa.Integer(), nullable=True),
        sa.Column("section", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("borrow_request_id"),
    )
    op.create_index("ix_schedules_course_id", "schedules", ["course_id"])
    op.create_index("ix_schedules_instructor_id", "schedules", ["instructor_id"])
    op.create_index("ix_schedules_room_id", "schedules", ["room_id"])
    op.create_index("ix_schedules_source_schedule_id", "schedules", ["source_schedule_id"])
    op.create_index("ix_schedules_term_year", "schedules", ["term", "year"])
    op.create_index(
        "uq_schedules_room_slot",
        "schedules",
        ["room_id", "day_of_week", "occurrence_key", "start_time", "term", "year"],
        unique=True,
        postgresql_where=PUBLISHED_ONLY,
        sqlite_where=PUBLISHED_ONLY,
    )
    op.create_index(
        "uq_schedules_instructor_slot",
        "schedules",
        ["instructor_id", "day_of_week", "occurrence_key", "start_time", "term", "year"],
        unique=True,
        postgresql_where=PUBLISHED_ONLY,
        sqlite_where=PUBLISHED_ONLY,
    )

    op.create_table(
        "schedule_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("instructor_id", sa.String(length=36), nullable=False),
        sa.Column("request_type", request_type, nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=True),
        sa.Column("schedule_id", sa.String(length=36), nullable=True),
        sa.Column("room_id", sa.String(length=36), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("day_of_week", sa.String(length=10), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("term", sa.String(length=50), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("purpose", request_purpose, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("status", request_status, nullable=False, server_default="pending"),
        sa.Column("conflict_flag", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("conflicts", sa.JSON(), nullable=False),
        sa.Column("instructor_name", sa.String(length=200), nullable=True),
        sa.Column("course_code", sa.String(length=50), nullable=True),
        sa.Column("course_name", sa.String(length=200), nullable=True),
        sa.Column("room_name", sa.String(length=100), nullable=True),
        sa.Column("original_instructor_id", sa.String(length=36), nullable=True),
        sa.Column("original_instructor_name", sa.String(length=200), nullable=True),
        sa.Column("reviewer_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_schedule_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedule_requests_instructor_id", "schedule_requests", ["instructor_id"])
    op.create_index("ix_schedule_requests_schedule_id", "schedule_requests", ["schedule_id"])
    op.create_index("ix_schedule_requests_status", "schedule_requests", ["status"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("schedule_id", sa.String(length=36), nullable=False),
        sa.Column("instructor_id", sa.String(length=36), nullable=True),
        sa.Column("term", sa.String(length=50), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("student_name", sa.String(length=200), nullable=True),
        sa.Column("course_code", sa.String(length=50), nullable=True),
        sa.Column("course_name", sa.String(length=200), nullable=True),
        sa.Column("year_level", sa.Integer(), nullable=True),
        sa.Column("section", sa.String(length=20), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "student_id", "course_id", "schedule_id", name="uq_enrollments_student_course_schedule"
        ),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_schedule_id", "enrollments", ["schedule_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor", sa.String(length=200), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=36), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])
    op.create_index("ix_activity_logs_entity_id", "activity_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_entity_id", table_name="activity_logs")
    op.drop_index("ix_activity_logs_action", table_name="activity_logs")
    op.drop_table("activity_logs")

    op.drop_index("ix_enrollments_schedule_id", table_name="enrollments")
    op.drop_index("ix_enrollments_student_id", table_name="enrollments")
    op.drop_table("enrollments")

    op.drop_index("ix_schedule_requests_status", table_name="schedule_requests")
    op.drop_index("ix_schedule_requests_schedule_id", table_name="schedule_requests")
    op.drop_index("ix_schedule_requests_instructor_id", table_name="schedule_requests")
    op.drop_table("schedule_requests")

    op.drop_index("uq_schedules_instructor_slot", table_name="schedules")
    op.drop_index("uq_schedules_room_slot", table_name="schedules")
    op.drop_index("ix_schedules_term_year", table_name="schedules")
    op.drop_index("ix_schedules_source_schedule_id", table_name="schedules")
    op.drop_index("ix_schedules_room_id", table_name="schedules")
    op.drop_index("ix_schedules_instructor_id", table_name="schedules")
    op.drop_index("ix_schedules_course_id", table_name="schedules")
    op.drop_table("schedules")

    op.drop_index("ix_students_student_number", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_instructors_email", table_name="instructors")
    op.drop_table("instructors")
    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_courses_term", table_name="courses")
    op.drop_index("ix_courses_code", table_name="courses")
    op.drop_table("courses")

    for enum_name in (
        "request_purpose",
        "request_status",
        "request_type",
        "schedule_status",
        "room_kind",
        "course_kind",
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
