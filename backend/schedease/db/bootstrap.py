from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from schedease.db.base import Base
import schedease.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "courses": {"id", "code", "term", "year_level", "section", "duration_minutes"},
    "rooms": {"id", "name", "kind", "capacity", "equipment"},
    "instructors": {"id", "name", "max_hours_per_week", "availability"},
    "schedules": {"id", "occurrence_key", "is_borrowed_instance", "borrowed_instances"},
    "schedule_requests": {"id", "request_type", "status", "conflict_flag"},
    "enrollments": {"id", "student_id", "schedule_id"},
}


def missing_schema_parts(engine: Engine) -> tuple[list[str], dict[str, list[str]]]:
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    with engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        for table_name, columns in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                missing_tables.append(table_name)
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(columns - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema(engine: Engine) -> None:
    """Create any missing tables. Column drift is reported, never patched; run Alembic for that."""
    Base.metadata.create_all(bind=engine, checkfirst=True)
    missing_tables, missing_columns = missing_schema_parts(engine)
    if missing_tables or missing_columns:
        logger.warning(
            "Database schema is out of date (missing tables: %s, missing columns: %s); run alembic upgrade head",
            missing_tables,
            missing_columns,
        )
