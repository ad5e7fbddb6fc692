from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from schedease.db.bootstrap import REQUIRED_COLUMNS, ensure_schema, missing_schema_parts


def test_health_endpoints(client):
    live = client.get("/api/health")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert "database" in payload
    assert "missing_tables" in payload["database"]


def test_schema_check_reports_missing_tables():
    empty = create_engine("sqlite+pysqlite://", poolclass=StaticPool)
    missing_tables, missing_columns = missing_schema_parts(empty)
    assert sorted(missing_tables) == sorted(REQUIRED_COLUMNS)
    assert missing_columns == {}


def test_ensure_schema_creates_tables():
    fresh = create_engine("sqlite+pysqlite://", poolclass=StaticPool)
    ensure_schema(fresh)
    assert missing_schema_parts(fresh) == ([], {})
