"""Tests for the Serper search client (httpx.MockTransport)."""

import json

import httpx
import pytest

from pressaudit.core import (
    ConfigurationError,
    InvalidCredentialsError,
    QuotaExceededError,
    RateLimitError,
    SearchAPIError,
)
from pressaudit.search import SerperClient, SerperClientSettings


def organic(*links):
    return {
        "organic": [
            {"title": f"Story {index}", "snippet": f"Snippet {index}", "link": link}
            for index, link in enumerate(links)
        ]
    }


def make_client(handler, **settings):
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="https://google.serper.dev",
    )
    return SerperClient(SerperClientSettings(api_key="test-key", **settings), client=http_client)


class TestSerperSearch:
    """Query construction and result merging."""

    @pytest.mark.asyncio
    async def test_primary_query_only_when_enough_results(self):
        """Three or more unique hits skip the supplementary query."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=organic("https://apnews.com/1", "https://apnews.com/2", "https://apnews.com/3"))

        async with make_client(handler) as client:
            candidates = await client.search("apnews.com", "Acme")

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/search"
        assert request.headers["X-API-KEY"] == "test-key"
        assert json.loads(request.content) == {
            "q": 'site:apnews.com "Acme"',
            "num": 15,
            "gl": "us",
            "hl": "en",
        }
        assert [c.link for c in candidates] == [
            "https://apnews.com/1",
            "https://apnews.com/2",
            "https://apnews.com/3",
        ]

    @pytest.mark.asyncio
    async def test_malformed_organic_item_skipped(self):
        """A hit with a non-string title is dropped; the rest of the page is kept."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "organic": [
                        {"title": 123, "snippet": "Acme Corp", "link": "https://apnews.com/a"},
                        {"title": "Acme story", "snippet": "Acme Corp", "link": "https://apnews.com/b"},
                    ]
                },
            )

        async with make_client(handler) as client:
            candidates = await client.search("apnews.com", "Acme")

        assert [c.link for c in candidates] == ["https://apnews.com/b"]

    @pytest.mark.asyncio
    async def test_supplementary_query_merges_unique_links(self):
        """Fewer than three hits trigger the broad query; duplicates are dropped."""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            bodies.append(body)
            if body["q"].endswith('"Acme"'):
                return httpx.Response(200, json=organic("https://ktla.com/a"))
            return httpx.Response(200, json=organic("https://ktla.com/a", "https://ktla.com/b"))

        async with make_client(handler) as client:
            candidates = await client.search("ktla.com", "Acme")

        assert [body["q"] for body in bodies] == ['site:ktla.com "Acme"', "site:ktla.com Acme"]
        assert bodies[1]["num"] == 10
        assert [c.link for c in candidates] == ["https://ktla.com/a", "https://ktla.com/b"]

    @pytest.mark.asyncio
    async def test_supplementary_failure_is_swallowed(self):
        """A failing broad query leaves the primary results intact."""

        def handler(request: httpx.Request) -> httpx.Response:
            if json.loads(request.content)["q"].endswith('"Acme"'):
                return httpx.Response(200, json=organic("https://ktla.com/a"))
            return httpx.Response(500, json={"message": "upstream down"})

        async with make_client(handler) as client:
            candidates = await client.search("ktla.com", "Acme")

        assert [c.link for c in candidates] == ["https://ktla.com/a"]

    @pytest.mark.asyncio
    async def test_results_without_link_are_skipped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"organic": [{"title": "No link"}]})

        async with make_client(handler) as client:
            assert await client.search("kxan.com", "Acme") == []


class TestSerperErrors:
    """Status and body mapping onto the error taxonomy."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_key_is_fatal(self, status):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"message": "Unauthorized."})

        async with make_client(handler) as client:
            with pytest.raises(InvalidCredentialsError) as exc_info:
                await client.search("apnews.com", "Acme")
        assert exc_info.value.fatal is True

    @pytest.mark.asyncio
    async def test_rate_limit_is_fatal(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, headers={"Retry-After": "30"}, json={"message": "Too many requests"})

        async with make_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.search("apnews.com", "Acme")
        assert exc_info.value.retry_after == 30
        assert exc_info.value.fatal is True

    @pytest.mark.asyncio
    async def test_exhausted_credits_are_fatal(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"message": "Not enough credits"})

        async with make_client(handler) as client:
            with pytest.raises(QuotaExceededError):
                await client.search("apnews.com", "Acme")

    @pytest.mark.asyncio
    async def test_server_error_is_recoverable(self):
        """A primary-query failure surfaces as a non-fatal search error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad gateway")

        async with make_client(handler) as client:
            with pytest.raises(SearchAPIError) as exc_info:
                await client.search("apnews.com", "Acme")
        assert exc_info.value.fatal is False
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_transport_error_is_recoverable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(SearchAPIError) as exc_info:
                await client.search("apnews.com", "Acme")
        assert exc_info.value.fatal is False

    @pytest.mark.asyncio
    async def test_invalid_json_is_recoverable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        async with make_client(handler) as client:
            with pytest.raises(SearchAPIError):
                await client.search("apnews.com", "Acme")

    def test_missing_api_key(self):
        with pytest.raises(ConfigurationError):
            SerperClient(SerperClientSettings(api_key="  "))
