"""Runtime settings loaded from the environment (and an optional ``.env`` file).

Only entry points call :meth:`Settings.from_env`. Components receive the values
they need explicitly, so nothing below the scripts reads ``os.environ``.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_FEED_URL = "https://trends.google.com/trending/rss?geo=US"
DEFAULT_SEARCH_URL = "https://public.api.bsky.app/xrpc/app.bsky.feed.searchPosts"

# Default chat model per provider
DEFAULT_MODELS = {
    "openai": "gpt-3.5-turbo",
    "claude": "claude-3-haiku-20240307",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    """All tunables of the dashboard, proxy and generator."""

    feed_url: str = DEFAULT_FEED_URL
    proxy_url: Optional[str] = None
    search_url: str = DEFAULT_SEARCH_URL
    refresh_seconds: float = 60.0
    enrich_delay_seconds: float = 1.0
    http_timeout_seconds: float = 10.0
    http_retries: int = 1
    llm_provider: str = "openai"
    llm_model: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    summary_endpoint: Optional[str] = None
    include_oldest_post_date: bool = True
    include_summary_generation: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 4000

    @property
    def model_name(self) -> str:
        """Configured model, or the provider's default."""
        return self.llm_model or DEFAULT_MODELS[self.llm_provider]

    @property
    def llm_api_key(self) -> Optional[str]:
        """API key matching :attr:`llm_provider`."""
        if self.llm_provider == "claude":
            return self.anthropic_api_key
        return self.openai_api_key

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *env* (defaults to ``os.environ`` after ``load_dotenv``)."""
        if env is None:
            load_dotenv()
            env = os.environ

        provider = (env.get("PULSE_LLM_PROVIDER") or "openai").strip().lower()
        if provider not in DEFAULT_MODELS:
            raise ConfigurationError(
                f"PULSE_LLM_PROVIDER must be one of {sorted(DEFAULT_MODELS)}, got {provider!r}"
            )

        retries = _get_int(env, "PULSE_HTTP_RETRIES", 1)
        if retries < 0:
            raise ConfigurationError("PULSE_HTTP_RETRIES must not be negative")

        return cls(
            feed_url=env.get("PULSE_FEED_URL") or DEFAULT_FEED_URL,
            proxy_url=env.get("PULSE_PROXY_URL") or None,
            search_url=env.get("PULSE_SEARCH_URL") or DEFAULT_SEARCH_URL,
            refresh_seconds=_get_float(env, "PULSE_REFRESH_SECONDS", 60.0),
            enrich_delay_seconds=_get_float(env, "PULSE_ENRICH_DELAY_SECONDS", 1.0),
            http_timeout_seconds=_get_float(env, "PULSE_HTTP_TIMEOUT_SECONDS", 10.0),
            http_retries=retries,
            llm_provider=provider,
            llm_model=env.get("PULSE_LLM_MODEL") or None,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            summary_endpoint=env.get("PULSE_SUMMARY_ENDPOINT") or None,
            include_oldest_post_date=_get_bool(env, "PULSE_INCLUDE_OLDEST_POST_DATE", True),
            include_summary_generation=_get_bool(env, "PULSE_INCLUDE_SUMMARY_GENERATION", True),
            api_host=env.get("PULSE_API_HOST") or "0.0.0.0",
            api_port=_get_int(env, "PULSE_API_PORT", 4000),
        )
