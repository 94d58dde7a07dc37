"""Integration tests for the schema API endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import app

pytestmark = pytest.mark.integration


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_health(client: TestClient) -> None:
    """Report the service as healthy."""

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["dialects"] == ["mysql", "sqlite", "postgresql", "ansi"]


def test_parse_returns_canonical_schemas(client: TestClient, employees_sql: str) -> None:
    """Return one schema per statement with detected dialects."""

    response = client.post("/api/v1/schemas/parse", json={"sql": employees_sql})

    assert response.status_code == 200
    tables = response.json()["tables"]
    assert [table["dialect"] for table in tables] == ["mysql", "sqlite", "ansi"]
    gender = tables[0]["columns"][4]
    assert gender["name"] == "gender"
    assert gender["enum_values"] == ["M", "F"]
    assert tables[0]["columns"][3]["default"] == {"value": "默认值测试", "kind": "string"}


def test_parse_with_explicit_dialect(client: TestClient) -> None:
    """Read the SQL in the requested dialect."""

    response = client.post(
        "/api/v1/schemas/parse",
        json={"sql": "CREATE TABLE t (a int)", "dialect": "postgresql"},
    )

    assert response.status_code == 200
    assert response.json()["tables"][0]["dialect"] == "postgresql"


def test_compare_reports_shape_and_differences(client: TestClient, employees_sql: str) -> None:
    """Compare the SQLite and ANSI variants against the MySQL one."""

    response = client.post("/api/v1/schemas/compare", json={"sql": employees_sql})

    assert response.status_code == 200
    sqlite_cmp, ansi_cmp = response.json()["comparisons"]
    assert sqlite_cmp["same_shape"] is True
    assert sqlite_cmp["equivalent"] is False
    assert ansi_cmp["equivalent"] is True


def test_compare_single_table_is_rejected(client: TestClient) -> None:
    """Require at least two variants."""

    response = client.post("/api/v1/schemas/compare", json={"sql": "CREATE TABLE t (a int)"})

    assert response.status_code == 422
    assert "two table definitions" in response.json()["detail"]


def test_render_to_sqlite(client: TestClient, employees_sql: str) -> None:
    """Render every variant for SQLite with warnings."""

    response = client.post("/api/v1/schemas/render", json={"sql": employees_sql, "target": "sqlite"})

    assert response.status_code == 200
    results = response.json()["results"]
    assert len(results) == 3
    assert "CHECK (gender IN ('M', 'F'))" in results[0]["statements"][0]
    assert results[0]["warnings"]


def test_models_endpoint(client: TestClient, employees_sql: str) -> None:
    """Return the generated package files."""

    response = client.post("/api/v1/schemas/models", json={"sql": employees_sql})

    assert response.status_code == 200
    files = response.json()["files"]
    assert set(files) == {"base.py", "__init__.py", "employees.py"}
    assert "class Employees(Base):" in files["employees.py"]


def test_malformed_sql_returns_422(client: TestClient) -> None:
    """Map syntax errors to 422 with the position in the message."""

    response = client.post("/api/v1/schemas/parse", json={"sql": "CREATE TABLE t (a int NOT FOO)"})

    assert response.status_code == 422
    assert "line 1" in response.json()["detail"]


def test_request_validation(client: TestClient) -> None:
    """Reject empty SQL and unknown dialects before parsing."""

    assert client.post("/api/v1/schemas/parse", json={"sql": ""}).status_code == 422
    assert (
        client.post("/api/v1/schemas/render", json={"sql": "CREATE TABLE t (a int)", "target": "oracle"}).status_code
        == 422
    )
