"""PostgreSQL manager against a fake psycopg connection. No server needed."""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from careerpulse import db_postgres
from careerpulse.errors import StorageError
from careerpulse.insights.normalizer import build_industry_insight, normalize_insight
from tests.conftest import FIXED_NOW, make_insight_payload


class _FakePgError(Exception):
    pass


class _FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 0
        self._rows = []

    def execute(self, sql, params=None):
        self.conn.statements.append((sql, params))
        if self.conn.fail_on and self.conn.fail_on in sql:
            raise _FakePgError(f"{self.conn.fail_on} failed")
        self.rowcount = self.conn.rowcount
        self._rows = list(self.conn.rows)

    def fetchall(self):
        return self._rows

    def fetchone(self):
        return self._rows[0] if self._rows else None


class _FakeConnection:
    def __init__(self):
        self.statements = []
        self.rows = []
        self.rowcount = 1
        self.fail_on = None
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self):
        return _FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


@pytest.fixture
def conn(monkeypatch):
    connection = _FakeConnection()
    fake_psycopg = SimpleNamespace(
        connect=lambda dsn, row_factory=None: connection, Error=_FakePgError
    )
    monkeypatch.setattr(db_postgres, "psycopg", fake_psycopg)
    monkeypatch.setattr(db_postgres, "dict_row", object())
    return connection


@pytest.fixture
def manager(conn):
    pg = db_postgres.PostgresManager(dsn="postgresql://app:secret@db:5432/careers")
    yield pg
    pg.close()


def _insight(industry: str):
    document = normalize_insight(json.dumps(make_insight_payload()))
    return build_industry_insight(industry, document, now=FIXED_NOW)


def test_schema_is_created_on_connect(manager, conn) -> None:
    assert "CREATE TABLE IF NOT EXISTS industry_insights" in conn.statements[0][0]
    assert conn.commits == 1


def test_safe_dsn_hides_password(manager) -> None:
    assert manager._safe_dsn_for_logs() == "postgresql://app@db:5432/careers"


def test_missing_dsn_is_rejected(conn, monkeypatch) -> None:
    monkeypatch.delenv("CAREERPULSE_DATABASE_DSN", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValueError, match="DSN missing"):
        db_postgres.PostgresManager()


def test_list_industries(manager, conn) -> None:
    conn.rows = [{"industry": "finance-banking"}, {"industry": "retail-ecommerce"}]
    assert manager.list_industries() == ["finance-banking", "retail-ecommerce"]


def test_list_failure_rolls_back(manager, conn) -> None:
    conn.fail_on = "SELECT industry"
    with pytest.raises(StorageError, match="Error fetching industries"):
        manager.list_industries()
    assert conn.rollbacks == 1


def test_update_writes_every_insight_column(manager, conn) -> None:
    manager.update_insight(_insight("finance-banking"))

    sql, params = conn.statements[-1]
    assert sql.startswith("UPDATE industry_insights SET salary_ranges = %s")
    assert params[-1] == "finance-banking"
    assert params[2] == "HIGH"
    assert params[-2] == "2026-10-18T00:00:00+00:00"


def test_update_without_row_raises(manager, conn) -> None:
    conn.rowcount = 0
    with pytest.raises(StorageError, match="No insight row") as exc_info:
        manager.update_insight(_insight("space-tourism"))
    assert exc_info.value.industry == "space-tourism"


def test_update_failure_rolls_back(manager, conn) -> None:
    conn.fail_on = "UPDATE"
    with pytest.raises(StorageError, match="Error updating insights"):
        manager.update_insight(_insight("finance-banking"))
    assert conn.rollbacks == 1


def test_seed_counts_new_rows(manager, conn) -> None:
    assert manager.seed_industries(["a-one", " ", "b-two"]) == 2
    inserts = [s for s, _ in conn.statements if s.startswith("INSERT")]
    assert len(inserts) == 2


def test_get_insight_for_pending_row_is_none(manager, conn) -> None:
    conn.rows = [{"industry": "a-one", "last_updated": None, "demand_level": None}]
    assert manager.get_insight("a-one") is None


def test_close_closes_connection(conn) -> None:
    pg = db_postgres.PostgresManager(dsn="postgresql://db/careers")
    pg.close()
    assert conn.closed
    assert pg.conn is None
