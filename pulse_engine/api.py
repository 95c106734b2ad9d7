"""HTTP side of Trend Pulse: the RSS proxy and the summary-post endpoint.

``GET /rss-proxy?url=...`` relays a feed verbatim so browser clients avoid
cross-origin restrictions; ``POST /generate-tweet`` runs the summary generator
server-side so the LLM key never leaves this process.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from fetchers.http_utils import build_client, get_with_retry
from generation_engine.summary_generator import SummaryGenerator

from .config import Settings
from .errors import ConfigurationError, GenerationError, TransportError, ValidationError

logger = logging.getLogger(__name__)

INVALID_TITLES_MESSAGE = "Invalid titles provided"


class GenerateTweetRequest(BaseModel):
    """Body of ``POST /generate-tweet``."""

    titles: List[str] = Field(..., min_length=1, description="Related headline titles")


class GenerateTweetResponse(BaseModel):
    tweet: str


def _build_generator(settings: Settings) -> Optional[SummaryGenerator]:
    try:
        return SummaryGenerator.from_settings(settings)
    except ConfigurationError as exc:
        logger.warning(f"/generate-tweet will answer 500 until configured: {exc}")
        return None


def create_app(
    settings: Optional[Settings] = None,
    generator: Optional[Any] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Factory for the proxy/generation service.

    Args:
        settings: defaults to :meth:`Settings.from_env`
        generator: object with ``generate_summary``; built from *settings* when omitted
        http_client: client used by the proxy; created (and closed) by the app when omitted
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_client = app.state.http_client is None
        if owns_client:
            app.state.http_client = build_client(settings.http_timeout_seconds)
        logger.info("Trend Pulse API started")
        try:
            yield
        finally:
            if owns_client:
                await app.state.http_client.aclose()
                app.state.http_client = None
            logger.info("Trend Pulse API stopped")

    app = FastAPI(title="Trend Pulse API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.http_client = http_client
    app.state.generator = generator if generator is not None else _build_generator(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"message": INVALID_TITLES_MESSAGE})

    @app.get("/health")
    async def health_check() -> dict:
        return {"status": "healthy"}

    @app.get("/rss-proxy")
    async def rss_proxy(request: Request, url: Optional[str] = Query(None)) -> Response:
        """Fetch *url* and relay the body as-is."""
        if not url:
            return JSONResponse(status_code=400, content={"error": "URL parameter is required"})

        try:
            upstream = await get_with_retry(
                request.app.state.http_client, url, retries=settings.http_retries,
            )
        except TransportError as exc:
            logger.error(f"RSS proxy fetch failed: {exc}")
            return JSONResponse(status_code=500, content={"error": "Error fetching the RSS feed"})

        media_type = upstream.headers.get("content-type", "text/plain")
        return Response(content=upstream.content, media_type=media_type)

    @app.post("/generate-tweet", response_model=GenerateTweetResponse)
    async def generate_tweet(request: Request, payload: GenerateTweetRequest) -> Any:
        """Generate one summary post from the given headline titles."""
        summary_generator = request.app.state.generator
        if summary_generator is None:
            return JSONResponse(
                status_code=500, content={"message": "Summary generation is not configured"}
            )

        try:
            tweet = await summary_generator.generate_summary(payload.titles)
        except ValidationError:
            return JSONResponse(status_code=400, content={"message": INVALID_TITLES_MESSAGE})
        except GenerationError as exc:
            logger.error(f"Error generating tweet: {exc}")
            return JSONResponse(status_code=500, content={"message": "Failed to generate tweet"})

        return GenerateTweetResponse(tweet=tweet)

    return app
