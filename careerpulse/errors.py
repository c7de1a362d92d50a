"""Exceptions raised while refreshing industry insights."""

from typing import Any, Dict, Optional


class InsightError(Exception):
    """Base exception for all insight refresh errors."""

    def __init__(
        self,
        message: str,
        industry: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.industry = industry
        self.error_code = self.__class__.__name__
        self.details = details or {}


class StorageError(InsightError):
    """Raised when listing or updating insight rows fails."""

    pass


class GenerationError(InsightError):
    """Raised when the text generation service call fails."""

    pass


class ResponseError(InsightError):
    """Base class for errors in the generated response. Carries the offending text."""

    def __init__(
        self,
        message: str,
        raw_text: str = "",
        industry: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, industry=industry, details=details)
        self.raw_text = raw_text


class ParseError(ResponseError):
    """Raised when the generated response is not valid JSON."""

    pass


class SchemaError(ResponseError):
    """Raised when the generated JSON is missing fields or has invalid values."""

    pass
