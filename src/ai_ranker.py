"""Client for the remote AI ranking service.

The service receives a query plus the candidate bookmarks and answers with
candidate ids ordered by relevance:

  Request:  {"query": "<text>", "candidates": [{"id", "title", "url", "category", "description"}, ...]}
  Response: {"ids": ["<id>", ...]}
"""
from typing import Dict, List, Optional, Protocol

import httpx

from src.config import get_config


class RankingError(Exception):
    """The ranking service answered with something unusable."""


class RankingClient(Protocol):
    """Protocol for AI ranking backends."""

    async def rank(self, query: str, candidates: List[Dict[str, str]]) -> List[str]:
        """Rank candidates for a query.

        Args:
            query: Search query with the AI prefix already removed
            candidates: Candidate bookmarks as ranking context dicts

        Returns:
            Candidate ids, most relevant first. May be empty.
        """
        ...


class HttpRankingClient:
    """Ranking client that POSTs to an HTTP endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout if timeout is not None else get_config().search.ai_timeout
        self._transport = transport

    async def rank(self, query: str, candidates: List[Dict[str, str]]) -> List[str]:
        """Ask the ranking service to order candidates.

        Raises:
            httpx.HTTPError: On network failure, timeout or error status
            RankingError: If the response body is not {"ids": [...]}
        """
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"User-Agent": "BookmarkResurface/1.0 (ai search)"}
        ) as client:
            response = await client.post(
                self.endpoint,
                json={"query": query, "candidates": candidates},
            )
            response.raise_for_status()

            try:
                data = response.json()
            except ValueError as e:
                raise RankingError(f"Ranking response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise RankingError(f"Ranking response must be an object, got {type(data).__name__}")

        ids = data.get("ids")
        if not isinstance(ids, list):
            raise RankingError(f"Ranking response 'ids' must be a list, got {type(ids).__name__}")

        return [i for i in ids if isinstance(i, str)]


def get_ranking_client() -> Optional[RankingClient]:
    """Build the configured ranking client, or None if no endpoint is set."""
    endpoint = get_config().search.ai_endpoint
    if not endpoint:
        return None
    return HttpRankingClient(endpoint)
