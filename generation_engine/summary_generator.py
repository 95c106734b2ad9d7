"""Summary post generation from a trend's related headlines.

Two interchangeable implementations share the ``generate_summary`` contract:

* :class:`SummaryGenerator` talks to the language-model API directly (OpenAI
  chat completions or Anthropic messages). It is what the ``/generate-tweet``
  endpoint runs server-side.
* :class:`RemoteSummaryClient` posts the headlines to a ``/generate-tweet``
  endpoint, which keeps the API key off the dashboard host.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

import httpx

from pulse_engine.config import DEFAULT_MODELS, Settings
from pulse_engine.errors import ConfigurationError, GenerationError, ValidationError

logger = logging.getLogger(__name__)

MAX_SUMMARY_CHARS = 280


def clean_headlines(headlines: Sequence[str]) -> List[str]:
    """Return the non-blank headlines, raising :class:`ValidationError` if none remain."""
    if isinstance(headlines, (str, bytes)) or not isinstance(headlines, Sequence):
        raise ValidationError("headlines must be a list of strings")
    cleaned = [h.strip() for h in headlines if isinstance(h, str) and h.strip()]
    if not cleaned:
        raise ValidationError("at least one non-empty headline is required")
    return cleaned


def build_summary_prompt(headlines: Sequence[str]) -> str:
    """Prompt asking for one engaging post that sums up *headlines*."""
    return (
        "Generate a concise and engaging tweet using the following news article titles:\n"
        f"{', '.join(headlines)}.\n"
        "The tweet should summarize the theme in a compelling way and fit within "
        f"{MAX_SUMMARY_CHARS} characters. Return only the tweet text."
    )


class SummaryGenerator:
    """Generates a short summary post through an injected LLM client."""

    def __init__(
        self,
        client: Any,
        provider: str = "openai",
        model: Optional[str] = None,
        max_tokens: int = 200,
        temperature: float = 0.7,
    ):
        """
        Args:
            client: ``openai.AsyncOpenAI`` or ``anthropic.AsyncAnthropic`` instance
            provider: "openai" or "claude", selects how *client* is called
            model: model name, defaults to the provider's default
        """
        if provider not in DEFAULT_MODELS:
            raise ConfigurationError(f"Unknown LLM provider {provider!r}")
        self.client = client
        self.provider = provider
        self.model = model or DEFAULT_MODELS[provider]
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "SummaryGenerator":
        """Build the provider client from *settings*; fails fast without an API key."""
        api_key = settings.llm_api_key
        if not api_key:
            key_name = "ANTHROPIC_API_KEY" if settings.llm_provider == "claude" else "OPENAI_API_KEY"
            raise ConfigurationError(f"{key_name} is not set; summary generation is unavailable")

        if settings.llm_provider == "claude":
            import anthropic

            client = anthropic.AsyncAnthropic(api_key=api_key)
        else:
            import openai

            client = openai.AsyncOpenAI(api_key=api_key)

        logger.info(f"Summary generator using {settings.llm_provider} ({settings.model_name})")
        return cls(client, provider=settings.llm_provider, model=settings.model_name)

    async def _call_openai(self, prompt: str) -> Optional[str]:
        import openai

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.OpenAIError as exc:
            raise GenerationError(f"OpenAI API call failed: {exc}") from exc
        if not response.choices:
            return None
        return response.choices[0].message.content

    async def _call_claude(self, prompt: str) -> Optional[str]:
        import anthropic

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as exc:
            raise GenerationError(f"Claude API call failed: {exc}") from exc
        texts = [block.text for block in response.content if getattr(block, "type", "") == "text"]
        return "".join(texts) if texts else None

    async def generate_summary(self, headlines: Sequence[str]) -> str:
        """Return the generated summary for *headlines*, stripped of whitespace.

        Raises :class:`ValidationError` for an empty headline list (no API call
        is made) and :class:`GenerationError` when the API fails or returns
        nothing. There is no retry.
        """
        prompt = build_summary_prompt(clean_headlines(headlines))

        if self.provider == "claude":
            text = await self._call_claude(prompt)
        else:
            text = await self._call_openai(prompt)

        text = (text or "").strip()
        if not text:
            raise GenerationError(f"{self.provider} returned an empty summary")
        return text


class RemoteSummaryClient:
    """``generate_summary`` over HTTP against a ``/generate-tweet`` endpoint."""

    def __init__(self, client: httpx.AsyncClient, endpoint: str):
        self.client = client
        self.endpoint = endpoint

    async def generate_summary(self, headlines: Sequence[str]) -> str:
        titles = clean_headlines(headlines)
        try:
            response = await self.client.post(self.endpoint, json={"titles": titles})
            response.raise_for_status()
            tweet = response.json().get("tweet")
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 400:
                raise ValidationError(f"Summary endpoint rejected the request: {exc.response.text}") from exc
            raise GenerationError(
                f"Summary endpoint returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            raise GenerationError(f"Summary request failed: {exc}") from exc

        if not isinstance(tweet, str) or not tweet.strip():
            raise GenerationError("Summary endpoint returned no text")
        return tweet.strip()
