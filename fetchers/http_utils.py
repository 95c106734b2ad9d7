"""Shared httpx helpers: bounded timeouts and a single retry with back-off."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from pulse_engine.errors import TransportError

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]


def build_client(timeout: float = 10.0, **kwargs: Any) -> httpx.AsyncClient:
    """Return an ``httpx.AsyncClient`` with a bounded timeout on every request."""
    return httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True, **kwargs)


async def get_with_retry(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    retries: int = 1,
    backoff: float = 1.0,
    sleep: Sleeper = asyncio.sleep,
) -> httpx.Response:
    """GET *url*, retrying network errors and 5xx responses up to *retries* times.

    Failures are raised as :class:`TransportError` once the attempts run out
    (4xx immediately). Waits ``backoff * 2**n`` seconds before retry *n + 1*.
    """
    attempts = max(retries, 0) + 1
    attempt = 0
    while True:
        try:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as exc:
            # 4xx will not get better on a second try
            if exc.response.status_code < 500 or attempt >= attempts - 1:
                raise TransportError(
                    f"GET {url} returned HTTP {exc.response.status_code}",
                    status_code=exc.response.status_code,
                ) from exc
            logger.warning(f"GET {url} returned HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            if attempt >= attempts - 1:
                raise TransportError(f"GET {url} failed: {exc}") from exc
            logger.warning(f"GET {url} failed: {exc}")

        wait_time = backoff * (2 ** attempt)
        attempt += 1
        logger.info(f"Retrying in {wait_time:.1f}s (attempt {attempt + 1}/{attempts})")
        await sleep(wait_time)
