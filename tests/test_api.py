"""Tests for the proxy and summary generation endpoints."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from pulse_engine.api import create_app
from pulse_engine.config import Settings
from pulse_engine.errors import GenerationError

FEED_URL = "https://trends.google.com/trending/rss?geo=US"


class TestGenerateTweetEndpoint:
    """POST /generate-tweet"""

    @pytest.fixture
    def generator(self):
        generator = MagicMock()
        generator.generate_summary = AsyncMock(return_value="Big night for the champions 🏆")
        return generator

    @pytest.fixture
    def client(self, generator):
        app = create_app(Settings(http_retries=0), generator=generator)
        with TestClient(app) as test_client:
            yield test_client

    def test_generates_tweet(self, client, generator):
        response = client.post("/generate-tweet", json={"titles": ["Team wins", "City celebrates"]})

        assert response.status_code == 200
        assert response.json() == {"tweet": "Big night for the champions 🏆"}
        generator.generate_summary.assert_awaited_once_with(["Team wins", "City celebrates"])

    @pytest.mark.parametrize(
        "body",
        [
            {"titles": []},
            {},
            {"titles": "not a list"},
            {"titles": None},
        ],
    )
    def test_invalid_titles_are_rejected_without_upstream_call(self, client, generator, body):
        response = client.post("/generate-tweet", json=body)

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid titles provided"}
        generator.generate_summary.assert_not_awaited()

    def test_non_json_body_is_rejected(self, client, generator):
        response = client.post(
            "/generate-tweet", content=b"titles=a", headers={"content-type": "text/plain"}
        )

        assert response.status_code == 400
        generator.generate_summary.assert_not_awaited()

    def test_other_methods_are_not_allowed(self, client):
        assert client.get("/generate-tweet").status_code == 405

    def test_upstream_failure_is_500(self, client, generator):
        generator.generate_summary.side_effect = GenerationError("rate limited")

        response = client.post("/generate-tweet", json={"titles": ["Team wins"]})

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to generate tweet"}

    def test_missing_api_key_is_500_not_empty_text(self):
        app = create_app(Settings())
        with TestClient(app) as client:
            response = client.post("/generate-tweet", json={"titles": ["Team wins"]})

        assert response.status_code == 500
        assert "not configured" in response.json()["message"]


class TestRssProxyEndpoint:
    """GET /rss-proxy"""

    @staticmethod
    def _client(handler):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        app = create_app(Settings(http_retries=0), generator=MagicMock(), http_client=http_client)
        return TestClient(app)

    def test_relays_body_verbatim(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(
                200, content=b"<rss><channel/></rss>", headers={"content-type": "application/rss+xml"}
            )

        with self._client(handler) as client:
            response = client.get("/rss-proxy", params={"url": FEED_URL})

        assert response.status_code == 200
        assert response.content == b"<rss><channel/></rss>"
        assert response.headers["content-type"].startswith("application/rss+xml")
        assert seen == [FEED_URL]

    def test_missing_url_is_400(self):
        with self._client(lambda request: httpx.Response(200)) as client:
            response = client.get("/rss-proxy")

        assert response.status_code == 400
        assert response.json() == {"error": "URL parameter is required"}

    def test_upstream_failure_is_500(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        with self._client(handler) as client:
            response = client.get("/rss-proxy", params={"url": FEED_URL})

        assert response.status_code == 500
        assert response.json() == {"error": "Error fetching the RSS feed"}

    def test_network_failure_is_500(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route", request=request)

        with self._client(handler) as client:
            response = client.get("/rss-proxy", params={"url": FEED_URL})

        assert response.status_code == 500


def test_health_endpoint():
    with TestClient(create_app(Settings(), generator=MagicMock())) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
