"""Weekly industry insight refresh.

For each stored industry: prompt the text generator for a JSON insight
document, normalize it, and overwrite the industry's row. A failure for one
industry is logged and recorded in the run summary; the loop moves on. Only a
failure to list industries aborts the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from loguru import logger

from careerpulse.config import DEFAULT_INDUSTRY
from careerpulse.errors import (
    GenerationError,
    InsightError,
    ResponseError,
    StorageError,
)
from careerpulse.insights.normalizer import build_industry_insight, normalize_insight
from careerpulse.models import IndustryInsight
from careerpulse.prompts import build_industry_insight_prompt


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class IndustryResult:
    """Outcome of refreshing one industry."""

    industry: str
    ok: bool
    error: Optional[str] = None
    error_type: Optional[str] = None
    insight: Optional[IndustryInsight] = None

    @classmethod
    def success(cls, industry: str, insight: IndustryInsight) -> "IndustryResult":
        return cls(industry=industry, ok=True, insight=insight)

    @classmethod
    def failure(cls, industry: str, exc: Exception) -> "IndustryResult":
        error_type = (
            exc.error_code if isinstance(exc, InsightError) else type(exc).__name__
        )
        return cls(industry=industry, ok=False, error=str(exc), error_type=error_type)


@dataclass
class RefreshSummary:
    """Per-industry results of one refresh run."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    payload_industry: Optional[str] = None
    results: List[IndustryResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "payload_industry": self.payload_industry,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": [
                {"industry": r.industry, "error_type": r.error_type, "error": r.error}
                for r in self.results
                if not r.ok
            ],
        }


class InsightRefreshJob:
    """Refreshes every stored industry insight, one industry at a time."""

    def __init__(
        self,
        db_manager,
        generator,
        clock: Optional[Callable[[], datetime]] = None,
        default_industry: str = DEFAULT_INDUSTRY,
    ):
        """
        Args:
            db_manager: Storage with ``list_industries`` and ``update_insight``.
            generator: A :class:`careerpulse.ai.TextGenerator`.
            clock: Returns the current aware UTC time. Defaults to ``datetime.now``.
            default_industry: Industry named in the run payload when none is given.
        """
        self.db = db_manager
        self.generator = generator
        self.clock = clock or _utcnow
        self.default_industry = default_industry

    def run(self, payload: Optional[Dict] = None) -> RefreshSummary:
        """Run one refresh pass over all stored industries.

        Args:
            payload: Optional trigger payload, ``{"industry": str}``.

        Returns:
            The run summary. Per-industry failures are recorded, not raised.

        Raises:
            StorageError: If the industry list can't be read.
        """
        logger.info(f"Insight refresh triggered with payload: {payload}")
        payload = payload or {"industry": self.default_industry}
        summary = RefreshSummary(
            started_at=self.clock(), payload_industry=payload.get("industry")
        )

        industries = self._list_industries()
        if not industries:
            # Rows are provisioned by `careerpulse seed`; the job never creates them.
            logger.warning(
                "No industries found in the database; nothing to refresh "
                f"(payload industry: {summary.payload_industry})"
            )
            summary.finished_at = self.clock()
            return summary

        logger.info(f"Refreshing insights for {len(industries)} industries")
        for industry in industries:
            summary.results.append(self._refresh_safely(industry))

        summary.finished_at = self.clock()
        logger.info(
            f"Insight refresh complete: {summary.succeeded} updated, "
            f"{summary.failed} failed"
        )
        return summary

    def refresh_industry(self, industry: str) -> IndustryInsight:
        """Generate, validate and persist insights for one industry.

        Raises:
            GenerationError: If the generation call fails.
            ParseError: If the response is not JSON.
            SchemaError: If the JSON is not a valid insight document.
            StorageError: If the row can't be updated.
        """
        logger.info(f"Processing industry: {industry}")
        prompt = build_industry_insight_prompt(industry)

        try:
            text = self.generator.generate_text(prompt)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(
                f"Error generating content: {e}", industry=industry
            ) from e

        document = normalize_insight(text)
        insight = build_industry_insight(industry, document, now=self.clock())

        try:
            self.db.update_insight(insight)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(
                f"Error updating insights: {e}", industry=industry
            ) from e

        logger.info(f"Successfully updated insights for industry: {industry}")
        return insight

    def _list_industries(self) -> List[str]:
        try:
            industries = self.db.list_industries()
        except StorageError as e:
            logger.error(f"Error fetching industries from the database: {e}")
            raise
        except Exception as e:
            logger.error(f"Error fetching industries from the database: {e}")
            raise StorageError(f"Error fetching industries: {e}") from e

        logger.debug(f"Fetched industries: {industries}")
        return list(industries or [])

    def _refresh_safely(self, industry: str) -> IndustryResult:
        try:
            return IndustryResult.success(industry, self.refresh_industry(industry))
        except ResponseError as e:
            e.industry = e.industry or industry
            logger.error(f"Error processing industry {industry}: {e}")
            logger.error(f"Response text: {e.raw_text[:500]}")
            return IndustryResult.failure(industry, e)
        except InsightError as e:
            e.industry = e.industry or industry
            logger.error(f"Error processing industry {industry}: {e}")
            return IndustryResult.failure(industry, e)
        except Exception as e:
            logger.exception(f"Unexpected error processing industry {industry}: {e}")
            return IndustryResult.failure(industry, e)
