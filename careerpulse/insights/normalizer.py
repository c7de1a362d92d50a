"""Turn raw generation output into a validated insight document."""

import json
import re
from datetime import datetime, timedelta
from typing import Any, Dict

from loguru import logger
from pydantic import ValidationError

from careerpulse.errors import ParseError, SchemaError
from careerpulse.models import (
    DemandLevel,
    IndustryInsight,
    InsightDocument,
    MarketOutlook,
)

REFRESH_INTERVAL = timedelta(days=7)

DEMAND_LEVEL_MAPPING = {
    "High": DemandLevel.HIGH,
    "Medium": DemandLevel.MEDIUM,
    "Low": DemandLevel.LOW,
}

MARKET_OUTLOOK_MAPPING = {
    "Positive": MarketOutlook.POSITIVE,
    "Neutral": MarketOutlook.NEUTRAL,
    "Negative": MarketOutlook.NEGATIVE,
}

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers and surrounding whitespace."""
    return _CODE_FENCE.sub("", text or "").strip()


def _reject_constant(name: str) -> None:
    # NaN and Infinity are not JSON, even though json.loads accepts them.
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_insight_json(cleaned_text: str) -> Any:
    """Parse the cleaned response text as strict JSON.

    Raises:
        ParseError: If the text is not valid JSON. ``raw_text`` holds the text.
    """
    try:
        return json.loads(cleaned_text, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(
            f"Response is not valid JSON: {e}", raw_text=cleaned_text
        ) from e


def ensure_object(value: Any, raw_text: str = "") -> Dict[str, Any]:
    """Check the parsed value is a JSON object.

    Raises:
        SchemaError: If the value is null or not an object.
    """
    if not isinstance(value, dict):
        raise SchemaError(
            f"Invalid insights format received: {raw_text}", raw_text=raw_text
        )
    return value


def _map_enum(field: str, value: Any, mapping: Dict, raw_text: str):
    if isinstance(value, str) and value in mapping:
        return mapping[value]
    raise SchemaError(f"Invalid {field} value: {value}", raw_text=raw_text)


def map_demand_level(value: Any, raw_text: str = "") -> DemandLevel:
    """Map ``High``/``Medium``/``Low`` to the canonical demand level.

    Raises:
        SchemaError: If the value is missing or not one of the three spellings.
    """
    return _map_enum("demandLevel", value, DEMAND_LEVEL_MAPPING, raw_text)


def map_market_outlook(value: Any, raw_text: str = "") -> MarketOutlook:
    """Map ``Positive``/``Neutral``/``Negative`` to the canonical market outlook.

    Raises:
        SchemaError: If the value is missing or not one of the three spellings.
    """
    return _map_enum("marketOutlook", value, MARKET_OUTLOOK_MAPPING, raw_text)


def normalize_insight(text: str) -> InsightDocument:
    """Strip, parse, validate and map a raw generation response.

    Args:
        text: Raw response text from the generation service.

    Returns:
        The validated document with canonical enum values.

    Raises:
        ParseError: If the cleaned text is not JSON.
        SchemaError: If the JSON is not an object, an enum value is unmapped,
            or a required field is missing or has the wrong type.
    """
    cleaned = strip_code_fences(text)
    logger.debug(f"Generated response: {cleaned[:500]}")

    data = dict(ensure_object(parse_insight_json(cleaned), raw_text=cleaned))
    data["demandLevel"] = map_demand_level(data.get("demandLevel"), raw_text=cleaned)
    data["marketOutlook"] = map_market_outlook(
        data.get("marketOutlook"), raw_text=cleaned
    )

    try:
        return InsightDocument.model_validate(data)
    except ValidationError as e:
        raise SchemaError(
            f"Insights failed validation: {e.error_count()} error(s): "
            + "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ),
            raw_text=cleaned,
        ) from e


def build_industry_insight(
    industry: str, document: InsightDocument, now: datetime
) -> IndustryInsight:
    """Stamp a validated document with its industry and refresh timestamps."""
    return IndustryInsight(
        industry=industry,
        last_updated=now,
        next_update=now + REFRESH_INTERVAL,
        **document.model_dump(),
    )
