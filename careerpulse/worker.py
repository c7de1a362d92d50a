"""In-process scheduler for the weekly insight refresh."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from loguru import logger

from careerpulse.ai import get_text_generator
from careerpulse.config import get_default_industry, load_config_or_default, load_env
from careerpulse.db import get_db_manager
from careerpulse.insights.refresh import InsightRefreshJob


def run_refresh_once(payload: Optional[Dict] = None) -> Dict:
    """Run one insight refresh pass with configured collaborators.

    Raises:
        StorageError: If the industry list can't be read.
    """
    load_env()
    config = load_config_or_default()

    generator = get_text_generator(config)
    db = get_db_manager(config=config)
    try:
        job = InsightRefreshJob(
            db_manager=db,
            generator=generator,
            default_industry=get_default_industry(config),
        )
        summary = job.run(payload)
        result = summary.to_dict()
        logger.info(f"Refresh worker cycle complete: {result}")
        return result
    finally:
        db.close()


def _scheduled_refresh() -> None:
    try:
        run_refresh_once()
    except Exception as e:
        # Keep the scheduler alive; the next weekly run retries from scratch.
        logger.exception(f"Scheduled insight refresh failed: {e}")


def run_worker_scheduler() -> None:
    """Start a blocking APScheduler loop running the refresh every Sunday at 00:00."""
    try:
        from apscheduler.schedulers.blocking import BlockingScheduler
    except ImportError as exc:
        raise RuntimeError(
            "APScheduler is required for worker scheduler mode. "
            "Install with: pip install apscheduler"
        ) from exc

    scheduler = BlockingScheduler()
    scheduler.add_job(
        _scheduled_refresh,
        "cron",
        day_of_week="sun",
        hour=0,
        minute=0,
        id="insight_refresh",
        max_instances=1,
        coalesce=True,
    )

    logger.info(
        f"Worker scheduler started at {datetime.now().isoformat()} "
        "(insight refresh weekly, Sunday 00:00)."
    )
    scheduler.start()
