"""Industry insight prompt for the weekly refresh."""

INDUSTRY_INSIGHT_PROMPT = """
Analyze the current state of the {industry} industry and provide insights in ONLY the following JSON format without any additional notes or explanations:
{{
  "salaryRanges": [
    {{ "role": "string", "min": number, "max": number, "median": number, "location": "string" }}
  ],
  "growthRate": number,
  "demandLevel": "High" | "Medium" | "Low",
  "topSkills": ["skill1", "skill2"],
  "marketOutlook": "Positive" | "Neutral" | "Negative",
  "keyTrends": ["trend1", "trend2"],
  "recommendedSkills": ["skill1", "skill2"]
}}

IMPORTANT: Return ONLY the JSON. No additional text, notes, or markdown formatting.
Include at least {min_roles} common roles for salary ranges.
Growth rate should be a percentage.
Include at least {min_items} skills and trends.
"""


def build_industry_insight_prompt(
    industry: str, min_roles: int = 5, min_items: int = 5
) -> str:
    """Build the insight prompt for one industry.

    Args:
        industry: Industry identifier, e.g. ``"tech-software-development"``.
        min_roles: Minimum number of salary-range entries to request.
        min_items: Minimum number of skills and trends to request.

    Returns:
        The prompt text.
    """
    if not industry or not industry.strip():
        raise ValueError("Industry must be a non-empty string")
    return INDUSTRY_INSIGHT_PROMPT.format(
        industry=industry.strip(), min_roles=min_roles, min_items=min_items
    ).strip()
