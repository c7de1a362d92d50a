"""AI API integrations for Gemini, OpenAI and Anthropic."""

import os
from typing import Dict, Optional, Protocol

import anthropic
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from loguru import logger
from openai import OpenAI, OpenAIError

from careerpulse.errors import GenerationError

DEFAULT_PROVIDER = "gemini"


class TextGenerator(Protocol):
    """Protocol for text generation services - implement this to add new providers."""

    model: str

    def generate_text(self, prompt: str) -> str:
        """Send a prompt and return the first candidate's text."""
        ...


def _require_prompt(prompt: str) -> None:
    if not prompt or not prompt.strip():
        raise ValueError("Prompt must be non-empty string")


class GeminiService:
    """Text generation with Google Gemini."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Configure the Gemini client."""
        self.api_key = (
            api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        )
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY environment variable is required")

        genai.configure(api_key=self.api_key)
        self.model = model or os.getenv("CAREERPULSE_GEMINI_MODEL", "gemini-1.5-flash")
        self.client = genai.GenerativeModel(self.model)

    def generate_text(self, prompt: str) -> str:
        """Generate content and return the first candidate's first text part."""
        _require_prompt(prompt)

        try:
            response = self.client.generate_content(prompt)
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini API error: {e}")
            raise GenerationError(f"Gemini API error: {e}") from e

        try:
            text = response.candidates[0].content.parts[0].text or ""
        except (IndexError, AttributeError) as e:
            raise GenerationError("Gemini returned no candidate text") from e

        logger.debug(f"Raw Gemini response: {text[:200]}...")
        return text


class AIService:
    """Text generation with the OpenAI API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize OpenAI client."""
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required")

        self.client = OpenAI(api_key=self.api_key)
        self.model = model or "gpt-4o"

    def generate_text(self, prompt: str, temperature: float = 0.7) -> str:
        """Make a chat completion request to OpenAI."""
        _require_prompt(prompt)
        if not (0.0 <= temperature <= 2.0):
            raise ValueError("Temperature must be between 0.0 and 2.0")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise GenerationError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise GenerationError("OpenAI returned no choices")
        text = response.choices[0].message.content or ""
        logger.debug(f"Raw OpenAI response: {text[:200]}...")
        return text


class AnthropicService:
    """Text generation with the Anthropic Claude API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize Anthropic client."""
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")

        self.client = anthropic.Anthropic(api_key=self.api_key)
        self.model = model or "claude-sonnet-4-20250514"

    def generate_text(
        self, prompt: str, temperature: float = 0.7, max_tokens: int = 4096
    ) -> str:
        """Make a message request to Anthropic Claude."""
        _require_prompt(prompt)
        if not (0.0 <= temperature <= 1.0):
            raise ValueError("Temperature must be between 0.0 and 1.0")

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
            )
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise GenerationError(f"Anthropic API error: {e}") from e

        if not response.content:
            raise GenerationError("Anthropic returned no content")
        text = getattr(response.content[0], "text", "") or ""
        logger.debug(f"Raw Anthropic response: {text[:200]}...")
        return text


PROVIDERS = {
    "gemini": GeminiService,
    "openai": AIService,
    "anthropic": AnthropicService,
}


def get_text_generator(config: Optional[Dict] = None) -> TextGenerator:
    """Build the configured text generation service.

    The provider comes from ``CAREERPULSE_AI_PROVIDER`` or ``ai.provider`` in
    config.yaml (default ``gemini``). ``ai.model`` only applies to the provider
    named in config; an env override to another provider uses that provider's
    default model.

    Raises:
        ValueError: If the provider is unknown or its API key is missing.
    """
    ai_cfg = (config or {}).get("ai", {}) or {}
    configured = str(ai_cfg.get("provider") or DEFAULT_PROVIDER).strip().lower()
    provider = (
        str(os.environ.get("CAREERPULSE_AI_PROVIDER") or configured).strip().lower()
    )

    service_cls = PROVIDERS.get(provider)
    if service_cls is None:
        raise ValueError(
            f"Unknown AI provider '{provider}'. Expected one of: {', '.join(PROVIDERS)}"
        )

    model = ai_cfg.get("model") if provider == configured else None
    service = service_cls(model=model or None)
    logger.info(f"Using {provider} text generation (model: {service.model})")
    return service
