"""Prompt templates for AI interactions."""

from careerpulse.prompts.industry_insights import (
    INDUSTRY_INSIGHT_PROMPT,
    build_industry_insight_prompt,
)

__all__ = [
    "INDUSTRY_INSIGHT_PROMPT",
    "build_industry_insight_prompt",
]
