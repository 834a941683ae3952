"""Tests for the AI ranking client."""
import json

import httpx
import pytest

from src.ai_ranker import HttpRankingClient, RankingError, get_ranking_client
from src.config import Config, SearchConfig


CANDIDATES = [
    {"id": "a", "title": "A", "url": "https://a.com", "category": "Work", "description": ""},
    {"id": "b", "title": "B", "url": "https://b.com", "category": "Work", "description": "bee"},
]


def client_returning(status_code=200, body=None, content=None, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=body)

    return HttpRankingClient("https://rank.example.com/api", timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
class TestHttpRankingClient:
    async def test_returns_ids(self):
        client = client_returning(body={"ids": ["b", "a"]})
        assert await client.rank("query", CANDIDATES) == ["b", "a"]

    async def test_posts_query_and_candidates(self):
        seen = []
        client = client_returning(body={"ids": []}, seen=seen)
        await client.rank("find bees", CANDIDATES)

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://rank.example.com/api"
        assert json.loads(request.content) == {"query": "find bees", "candidates": CANDIDATES}

    async def test_non_string_ids_dropped(self):
        client = client_returning(body={"ids": ["a", 3, None, "b"]})
        assert await client.rank("q", CANDIDATES) == ["a", "b"]

    async def test_ids_not_a_list(self):
        client = client_returning(body={"ids": "a,b"})
        with pytest.raises(RankingError, match="must be a list"):
            await client.rank("q", CANDIDATES)

    async def test_payload_not_an_object(self):
        client = client_returning(body=["a", "b"])
        with pytest.raises(RankingError, match="must be an object"):
            await client.rank("q", CANDIDATES)

    async def test_invalid_json(self):
        client = client_returning(content=b"not json")
        with pytest.raises(RankingError, match="not JSON"):
            await client.rank("q", CANDIDATES)

    async def test_error_status_raises(self):
        client = client_returning(status_code=500, body={"error": "Internal Server Error"})
        with pytest.raises(httpx.HTTPStatusError):
            await client.rank("q", CANDIDATES)


class TestGetRankingClient:
    def test_none_without_endpoint(self, monkeypatch):
        monkeypatch.setattr("src.ai_ranker.get_config", lambda: Config(search=SearchConfig()))
        assert get_ranking_client() is None

    def test_uses_configured_endpoint(self, monkeypatch):
        config = Config(search=SearchConfig(ai_endpoint="https://rank.example.com", ai_timeout=2.5))
        monkeypatch.setattr("src.ai_ranker.get_config", lambda: config)
        client = get_ranking_client()
        assert isinstance(client, HttpRankingClient)
        assert client.endpoint == "https://rank.example.com"
        assert client.timeout == 2.5
