"""PostgreSQL backend for industry insight storage.

This module mirrors the public API of :class:`careerpulse.db.SQLiteManager` so
the job can switch backends via the factory in ``careerpulse.db``.

List fields are stored as JSON text and timestamps as ISO-8601 text, matching
the SQLite schema.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from loguru import logger

from careerpulse.db import INSIGHT_COLUMNS, insight_to_row, row_to_insight, summarize_rows
from careerpulse.errors import StorageError
from careerpulse.models import IndustryInsight

try:
    import psycopg
    from psycopg.rows import dict_row
except ImportError:  # pragma: no cover
    psycopg = None
    dict_row = None


class PostgresManager:
    """Manager for a PostgreSQL-backed insight database."""

    def __init__(self, dsn: Optional[str] = None) -> None:
        if psycopg is None:  # pragma: no cover
            raise RuntimeError(
                "Postgres backend selected but psycopg is not installed. "
                "Install with: pip install 'careerpulse[postgres]'"
            )

        resolved = (
            dsn
            or os.environ.get("CAREERPULSE_DATABASE_DSN")
            or os.environ.get("DATABASE_URL")
        )
        if not resolved:
            raise ValueError(
                "Postgres DSN missing. Set CAREERPULSE_DATABASE_DSN (or DATABASE_URL), "
                "or pass dsn=... to PostgresManager."
            )

        self.dsn = str(resolved)
        try:
            self.conn = psycopg.connect(self.dsn, row_factory=dict_row)
        except psycopg.Error as e:
            raise StorageError(
                f"Could not connect to {self._safe_dsn_for_logs()}: {e}"
            ) from e

        logger.info(f"Connected to PostgreSQL database: {self._safe_dsn_for_logs()}")
        self._init_schema()

    def _safe_dsn_for_logs(self) -> str:
        raw = self.dsn
        if "://" not in raw:
            return "(dsn)"
        try:
            parsed = urlparse(raw)
            host = parsed.hostname or "host"
            port = parsed.port or 5432
            db = (parsed.path or "/").lstrip("/") or "db"
            user = parsed.username or "user"
            return f"{parsed.scheme}://{user}@{host}:{port}/{db}"
        except ValueError:
            return "(dsn)"

    def _init_schema(self) -> None:
        """Initialize database schema."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS industry_insights (
                id BIGSERIAL PRIMARY KEY,
                industry TEXT UNIQUE NOT NULL,
                salary_ranges TEXT,
                growth_rate DOUBLE PRECISION,
                demand_level TEXT,
                top_skills TEXT,
                market_outlook TEXT,
                key_trends TEXT,
                recommended_skills TEXT,
                last_updated TEXT,
                next_update TEXT,
                created_at TEXT NOT NULL
            )
        """
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_insights_next_update "
            "ON industry_insights(next_update)"
        )
        self.conn.commit()
        logger.debug("Database schema initialized")

    def list_industries(self) -> List[str]:
        """Return every stored industry identifier."""
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT industry FROM industry_insights")
            return [row["industry"] for row in cursor.fetchall()]
        except psycopg.Error as e:
            self.conn.rollback()
            logger.error(f"Error fetching industries: {e}")
            raise StorageError(f"Error fetching industries: {e}") from e

    def update_insight(self, insight: IndustryInsight) -> None:
        """Overwrite the insight fields of an existing industry row."""
        row = insight_to_row(insight)
        set_clause = ", ".join(f"{col} = %s" for col in INSIGHT_COLUMNS)
        values = [row[col] for col in INSIGHT_COLUMNS] + [insight.industry]

        try:
            cursor = self.conn.cursor()
            cursor.execute(
                f"UPDATE industry_insights SET {set_clause} WHERE industry = %s",
                values,
            )
            self.conn.commit()
        except psycopg.Error as e:
            self.conn.rollback()
            logger.error(f"Error updating insights for industry {insight.industry}: {e}")
            raise StorageError(
                f"Error updating insights: {e}", industry=insight.industry
            ) from e

        if cursor.rowcount == 0:
            raise StorageError(
                f"No insight row for industry {insight.industry}",
                industry=insight.industry,
            )

    def seed_industries(self, industries: Iterable[str]) -> int:
        """Insert bare rows for industries that don't exist yet."""
        created = 0
        now = datetime.now(timezone.utc).isoformat()
        try:
            cursor = self.conn.cursor()
            for industry in industries:
                industry = (industry or "").strip()
                if not industry:
                    continue
                cursor.execute(
                    "INSERT INTO industry_insights (industry, created_at) "
                    "VALUES (%s, %s) ON CONFLICT (industry) DO NOTHING",
                    (industry, now),
                )
                if cursor.rowcount > 0:
                    created += 1
                    logger.info(f"Seeded industry: {industry}")
            self.conn.commit()
        except psycopg.Error as e:
            self.conn.rollback()
            logger.error(f"Error seeding industries: {e}")
            raise StorageError(f"Error seeding industries: {e}") from e
        return created

    def get_insight(self, industry: str) -> Optional[IndustryInsight]:
        """Return the stored insight for an industry, or None."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                "SELECT * FROM industry_insights WHERE industry = %s", (industry,)
            )
            row = cursor.fetchone()
        except psycopg.Error as e:
            self.conn.rollback()
            raise StorageError(f"Error reading insights: {e}", industry=industry) from e
        return row_to_insight(dict(row)) if row else None

    def list_insight_rows(self) -> List[Dict]:
        """Return all rows as dicts, ordered by industry."""
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT * FROM industry_insights ORDER BY industry")
            return [dict(row) for row in cursor.fetchall()]
        except psycopg.Error as e:
            self.conn.rollback()
            raise StorageError(f"Error reading insights: {e}") from e

    def get_insights_stats(self) -> Dict:
        """Get statistics about stored insights."""
        return summarize_rows(self.list_insight_rows())

    def close(self) -> None:
        conn = getattr(self, "conn", None)
        if conn is not None:
            conn.close()
            self.conn = None

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass
