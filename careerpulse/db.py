"""SQLite integration for industry insight storage."""

import json
import os
import sqlite3
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from loguru import logger
from pydantic import ValidationError

from careerpulse.errors import StorageError
from careerpulse.models import IndustryInsight

# Columns written by a refresh, in storage order.
INSIGHT_COLUMNS = (
    "salary_ranges",
    "growth_rate",
    "demand_level",
    "top_skills",
    "market_outlook",
    "key_trends",
    "recommended_skills",
    "last_updated",
    "next_update",
)

_JSON_COLUMNS = ("salary_ranges", "top_skills", "key_trends", "recommended_skills")


def insight_to_row(insight: IndustryInsight) -> Dict:
    """Serialize an insight into column values (JSON text for lists, ISO timestamps)."""
    return {
        "salary_ranges": json.dumps(
            [r.model_dump() for r in insight.salary_ranges]
        ),
        "growth_rate": insight.growth_rate,
        "demand_level": insight.demand_level.value,
        "top_skills": json.dumps(insight.top_skills),
        "market_outlook": insight.market_outlook.value,
        "key_trends": json.dumps(insight.key_trends),
        "recommended_skills": json.dumps(insight.recommended_skills),
        "last_updated": insight.last_updated.isoformat(),
        "next_update": insight.next_update.isoformat(),
    }


def row_to_insight(row: Dict) -> Optional[IndustryInsight]:
    """Build an insight from a stored row, or None if it was never refreshed."""
    if not row or not row.get("last_updated") or not row.get("demand_level"):
        return None
    data = dict(row)
    try:
        for key in _JSON_COLUMNS:
            if isinstance(data.get(key), str):
                data[key] = json.loads(data[key])
        return IndustryInsight.model_validate(
            {k: data.get(k) for k in ("industry",) + INSIGHT_COLUMNS}
        )
    except (ValueError, ValidationError) as e:
        raise StorageError(
            f"Corrupt insight row: {e}", industry=data.get("industry")
        ) from e


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def summarize_rows(rows: List[Dict], now: Optional[datetime] = None) -> Dict:
    """Compute insight statistics from rows holding industry/enum/timestamp columns."""
    now = now or datetime.now(timezone.utc)
    stats = {
        "total": len(rows),
        "refreshed": 0,
        "pending": 0,
        "due": 0,
        "by_demand_level": {},
        "by_market_outlook": {},
    }
    for row in rows:
        if not row.get("last_updated"):
            stats["pending"] += 1
            continue
        stats["refreshed"] += 1
        next_update = _parse_timestamp(row.get("next_update"))
        if next_update is not None and next_update <= now:
            stats["due"] += 1
        for key, column in (
            ("by_demand_level", "demand_level"),
            ("by_market_outlook", "market_outlook"),
        ):
            value = row.get(column)
            if value:
                stats[key][value] = stats[key].get(value, 0) + 1
    return stats


class SQLiteManager:
    """Manager for the SQLite insight database."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize SQLite database connection."""
        if db_path is None:
            from careerpulse.config import get_home

            db_path = os.path.join(str(get_home()), "data", "careerpulse.db")

        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.db_path = db_path
        try:
            self.conn = sqlite3.connect(db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open database {db_path}: {e}") from e
        self.conn.row_factory = sqlite3.Row

        logger.info(f"Connected to SQLite database: {db_path}")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS industry_insights (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                industry TEXT UNIQUE NOT NULL,
                salary_ranges TEXT,
                growth_rate REAL,
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
        """Return every stored industry identifier.

        Raises:
            StorageError: If the query fails.
        """
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT industry FROM industry_insights")
            return [row["industry"] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Error fetching industries: {e}")
            raise StorageError(f"Error fetching industries: {e}") from e

    def update_insight(self, insight: IndustryInsight) -> None:
        """Overwrite the insight fields of an existing industry row.

        Raises:
            StorageError: If no row exists for the industry or the write fails.
        """
        row = insight_to_row(insight)
        set_clause = ", ".join(f"{col} = ?" for col in INSIGHT_COLUMNS)
        values = [row[col] for col in INSIGHT_COLUMNS] + [insight.industry]

        try:
            cursor = self.conn.cursor()
            cursor.execute(
                f"UPDATE industry_insights SET {set_clause} WHERE industry = ?",
                values,
            )
            self.conn.commit()
        except sqlite3.Error as e:
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
        logger.debug(f"Updated insights for {insight.industry}")

    def seed_industries(self, industries: Iterable[str]) -> int:
        """Insert bare rows for industries that don't exist yet.

        Returns:
            Number of rows created.
        """
        created = 0
        now = datetime.now(timezone.utc).isoformat()
        try:
            cursor = self.conn.cursor()
            for industry in industries:
                industry = (industry or "").strip()
                if not industry:
                    continue
                cursor.execute(
                    "INSERT OR IGNORE INTO industry_insights (industry, created_at) "
                    "VALUES (?, ?)",
                    (industry, now),
                )
                if cursor.rowcount > 0:
                    created += 1
                    logger.info(f"Seeded industry: {industry}")
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            logger.error(f"Error seeding industries: {e}")
            raise StorageError(f"Error seeding industries: {e}") from e
        return created

    def get_insight(self, industry: str) -> Optional[IndustryInsight]:
        """Return the stored insight for an industry, or None if missing or never refreshed."""
        try:
            cursor = self.conn.cursor()
            cursor.execute(
                "SELECT * FROM industry_insights WHERE industry = ?", (industry,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Error reading insights: {e}", industry=industry) from e
        return row_to_insight(dict(row)) if row else None

    def list_insight_rows(self) -> List[Dict]:
        """Return all rows as dicts, ordered by industry."""
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT * FROM industry_insights ORDER BY industry")
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise StorageError(f"Error reading insights: {e}") from e

    def get_insights_stats(self) -> Dict:
        """Get statistics about stored insights."""
        return summarize_rows(self.list_insight_rows())

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Database connection closed")

    def __del__(self):
        """Cleanup on deletion."""
        try:
            self.close()
        except Exception:
            pass


def _get_backend_from_config(config: Dict) -> str:
    backend_env = os.environ.get("CAREERPULSE_DB_BACKEND") or ""
    cfg = config.get("database", {}) if isinstance(config, dict) else {}
    backend = backend_env or (cfg.get("backend") if isinstance(cfg, dict) else "")
    return str(backend or "sqlite").strip().lower()


def get_db_manager(config: Optional[Dict] = None):
    """Return the configured storage manager.

    The backend comes from ``CAREERPULSE_DB_BACKEND`` or ``database.backend``
    (``sqlite`` or ``postgres``).

    Raises:
        ValueError: If the backend is unknown.
    """
    config = config or {}
    backend = _get_backend_from_config(config)
    db_cfg = config.get("database", {}) or {}

    if backend == "sqlite":
        sqlite_cfg = db_cfg.get("sqlite", {}) or {}
        path = sqlite_cfg.get("path")
        return SQLiteManager(db_path=os.path.expanduser(path) if path else None)

    if backend == "postgres":
        from careerpulse.db_postgres import PostgresManager

        pg_cfg = db_cfg.get("postgres", {}) or {}
        return PostgresManager(dsn=pg_cfg.get("dsn") or None)

    raise ValueError(f"Unknown database backend '{backend}'. Use sqlite or postgres.")
