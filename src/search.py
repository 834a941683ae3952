"""Search engines for bookmarks."""
import re
import sys
from typing import Dict, List, Optional, Protocol

from src.ai_ranker import RankingClient
from src.models import Bookmark


AI_SEARCH_PREFIX = "ai:"
ALL_CATEGORIES = "All"

# Whitespace and common separators dropped for formatting-insensitive matching
_NORMALIZE_RE = re.compile(r"[\s\-_.]")


class SearchEngine(Protocol):
    """Protocol for search engines to allow extensibility."""

    def search(self, query: str, bookmarks: List[Bookmark]) -> List[Bookmark]:
        """Search bookmarks based on query.

        Args:
            query: Search query string
            bookmarks: List of bookmarks to search

        Returns:
            List of matching bookmarks, sorted by relevance
        """
        ...


def normalize(text: str) -> str:
    """Lowercase and drop whitespace, hyphens, underscores and periods."""
    return _NORMALIZE_RE.sub("", text.lower())


def searchable_text(bookmark: Bookmark) -> str:
    """Lowercased title, url, category and description joined by spaces."""
    return " ".join([
        bookmark.title or "",
        bookmark.url or "",
        bookmark.category or "",
        bookmark.description or "",
    ]).lower()


def score_bookmark(query: str, bookmark: Bookmark) -> int:
    """Score how well a bookmark matches a query.

    Bonuses add up:
      100  full query appears in the searchable text
       80  normalized query appears in the normalized text
       60  every query term appears (raw, or normalized in normalized text)
       20  at least one query term appears
       30  the title contains the query (raw or normalized)

    Args:
        query: Search query string
        bookmark: Bookmark to score

    Returns:
        Score, 0 meaning no match
    """
    lowered_query = query.lower()
    normalized_query = normalize(query)
    terms = lowered_query.split()

    text = searchable_text(bookmark)
    normalized_text = normalize(text)

    def term_present(term: str) -> bool:
        return term in text or normalize(term) in normalized_text

    score = 0

    if lowered_query in text:
        score += 100

    if normalized_query in normalized_text:
        score += 80

    if all(term_present(term) for term in terms):
        score += 60

    if any(term_present(term) for term in terms):
        score += 20

    title = (bookmark.title or "").lower()
    if lowered_query in title or normalized_query in normalize(title):
        score += 30

    return score


class SubstringSearchEngine:
    """Plain case-insensitive substring filter, collection order kept."""

    def search(self, query: str, bookmarks: List[Bookmark]) -> List[Bookmark]:
        if not query.strip():
            return list(bookmarks)

        needle = query.lower()
        return [
            bookmark for bookmark in bookmarks
            if needle in bookmark.title.lower()
            or needle in bookmark.url.lower()
            or needle in bookmark.category.lower()
            or (bookmark.description and needle in bookmark.description.lower())
        ]


class ScoredSearchEngine:
    """Fuzzy search ranked by score_bookmark."""

    def search(self, query: str, bookmarks: List[Bookmark]) -> List[Bookmark]:
        """Search bookmarks with scored matching.

        Args:
            query: Search query string
            bookmarks: List of bookmarks to search

        Returns:
            Matching bookmarks, highest score first. Equal scores keep
            collection order. An empty query returns everything unchanged.
        """
        if not query.strip():
            return list(bookmarks)

        # Score once so inclusion and ordering always agree
        scored_bookmarks = []
        for bookmark in bookmarks:
            score = score_bookmark(query, bookmark)
            if score > 0:
                scored_bookmarks.append((score, bookmark))

        # sort() is stable, so ties stay in collection order
        scored_bookmarks.sort(key=lambda x: x[0], reverse=True)

        return [bookmark for _, bookmark in scored_bookmarks]


class AISearchEngine:
    """Ranks with a remote AI service, falling back to scored search."""

    def __init__(
        self,
        ranker: Optional[RankingClient],
        fallback: Optional[SearchEngine] = None,
    ):
        self.ranker = ranker
        self.fallback = fallback or ScoredSearchEngine()

    async def search(
        self,
        query: str,
        bookmarks: List[Bookmark],
        fallback_query: Optional[str] = None,
    ) -> List[Bookmark]:
        """Search bookmarks through the ranking service.

        Never raises: any ranking failure, or a ranking with no usable ids,
        returns the fallback engine's result for fallback_query.

        Args:
            query: Query with the AI prefix already removed
            bookmarks: Candidate bookmarks
            fallback_query: Query for local ranking; defaults to query

        Returns:
            Candidates in the order the ranking service gave, with unknown
            ids and unmentioned candidates dropped
        """
        query = query.strip()
        if not query:
            return list(bookmarks)

        local_query = fallback_query if fallback_query is not None else query

        if self.ranker is None:
            return self.fallback.search(local_query, bookmarks)

        try:
            ids = await self.ranker.rank(query, [b.ranking_context() for b in bookmarks])
            ordered = reorder_by_ids(ids, bookmarks)
        except Exception as e:
            print(f"[Search] AI search failed, using local ranking: {e}", file=sys.stderr)
            return self.fallback.search(local_query, bookmarks)

        if not ordered:
            return self.fallback.search(local_query, bookmarks)

        return ordered


def reorder_by_ids(ids: List[str], bookmarks: List[Bookmark]) -> List[Bookmark]:
    """Arrange bookmarks in the given id order.

    Ids that match no bookmark, and repeats, are skipped. Bookmarks whose
    id is not listed are left out.
    """
    by_id: Dict[str, Bookmark] = {b.id: b for b in bookmarks}
    seen = set()
    ordered = []
    for bookmark_id in ids:
        if bookmark_id in by_id and bookmark_id not in seen:
            seen.add(bookmark_id)
            ordered.append(by_id[bookmark_id])
    return ordered


def filter_by_category(bookmarks: List[Bookmark], category: Optional[str]) -> List[Bookmark]:
    """Keep bookmarks in one category. None or 'All' keeps everything."""
    if not category or category == ALL_CATEGORIES:
        return list(bookmarks)
    return [b for b in bookmarks if b.category == category]


def list_categories(bookmarks: List[Bookmark]) -> List[Dict[str, object]]:
    """Category names with bookmark counts, sorted by name."""
    counts: Dict[str, int] = {}
    for bookmark in bookmarks:
        counts[bookmark.category] = counts.get(bookmark.category, 0) + 1
    return [{"name": name, "count": counts[name]} for name in sorted(counts)]


async def search_bookmarks(
    query: str,
    bookmarks: List[Bookmark],
    ranker: Optional[RankingClient] = None,
    category: Optional[str] = None,
    ai_prefix: str = AI_SEARCH_PREFIX,
    plain: bool = False,
) -> List[Bookmark]:
    """Filter by category, then search with the mode the query asks for.

    Queries starting with `ai_prefix` go to the AI ranking service; all
    others use scored matching, or a plain substring filter when `plain`
    is set.

    Args:
        query: Raw query as typed
        bookmarks: The user's bookmarks
        ranker: AI ranking client, or None to always rank locally
        category: Optional category to restrict to
        ai_prefix: Marker that selects AI ranking
        plain: Use substring filtering instead of scored matching

    Returns:
        Matching bookmarks in relevance order
    """
    candidates = filter_by_category(bookmarks, category)

    if not query.strip():
        return candidates

    if ai_prefix and query.startswith(ai_prefix):
        return await AISearchEngine(ranker).search(
            query[len(ai_prefix):], candidates, fallback_query=query
        )

    engine: SearchEngine = SubstringSearchEngine() if plain else ScoredSearchEngine()
    return engine.search(query, candidates)
