"""Industry insight models.

``InsightDocument`` is the shape the generation service is asked to return,
validated after the enum fields have been mapped to their canonical values.
``IndustryInsight`` is the persisted record, one per industry.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class DemandLevel(str, Enum):
    """Job-market demand for an industry."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class MarketOutlook(str, Enum):
    """Economic sentiment for an industry."""

    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"


class SalaryRange(BaseModel):
    """Salary band for one role."""

    model_config = ConfigDict(allow_inf_nan=False)

    role: str
    min: float
    max: float
    median: float
    location: str


class InsightDocument(BaseModel):
    """Validated insight fields for one industry, keyed by the camelCase wire names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    salary_ranges: List[SalaryRange] = Field(alias="salaryRanges")
    growth_rate: float = Field(alias="growthRate")
    demand_level: DemandLevel = Field(alias="demandLevel")
    top_skills: List[str] = Field(alias="topSkills")
    market_outlook: MarketOutlook = Field(alias="marketOutlook")
    key_trends: List[str] = Field(alias="keyTrends")
    recommended_skills: List[str] = Field(alias="recommendedSkills")


class IndustryInsight(InsightDocument):
    """A refreshed insight row."""

    industry: str
    last_updated: datetime = Field(alias="lastUpdated")
    next_update: datetime = Field(alias="nextUpdate")

    def to_wire(self) -> Dict[str, Any]:
        """Return the record with camelCase keys and canonical enum spellings."""
        return self.model_dump(mode="json", by_alias=True)
