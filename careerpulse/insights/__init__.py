"""Industry insight normalization and refresh."""

from careerpulse.insights.normalizer import (
    REFRESH_INTERVAL,
    map_demand_level,
    map_market_outlook,
    normalize_insight,
    strip_code_fences,
)
from careerpulse.insights.refresh import (
    IndustryResult,
    InsightRefreshJob,
    RefreshSummary,
)

__all__ = [
    "REFRESH_INTERVAL",
    "IndustryResult",
    "InsightRefreshJob",
    "RefreshSummary",
    "map_demand_level",
    "map_market_outlook",
    "normalize_insight",
    "strip_code_fences",
]
