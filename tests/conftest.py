"""Shared fixtures for tests."""
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from src.bookmark_store import BookmarkStore
from src.models import Bookmark


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_bookmark(
    id: str,
    created_days_ago: float = 10,
    title: str = None,
    url: str = None,
    category: str = "Uncategorized",
    description: str = None,
    reminded_days_ago: float = None,
    dismissed: bool = False,
) -> Bookmark:
    return Bookmark(
        id=id,
        url=url or f"https://example.com/{id}",
        title=title or f"Bookmark {id}",
        category=category,
        description=description,
        user_id="user-1",
        created_at=days_ago(created_days_ago),
        last_reminded_at=days_ago(reminded_days_ago) if reminded_days_ago is not None else None,
        reminder_dismissed=dismissed,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sample_bookmarks():
    """A small collection as BookmarkStore.list_bookmarks returns it."""
    return [
        make_bookmark(
            "1",
            title="Python Docs",
            url="https://docs.python.org",
            category="Reference",
            description="Official Python documentation",
        ),
        make_bookmark(
            "2",
            title="Jira Board",
            url="https://jira.example.com/board",
            category="Work",
        ),
        make_bookmark(
            "3",
            title="SQLite Guide",
            url="https://sqlite.org/guide",
            category="Tutorials",
            description="Using SQLite for local data storage",
        ),
        make_bookmark(
            "4",
            title="AI Tools",
            url="https://tools.example.com",
            category="Productivity",
        ),
        make_bookmark(
            "5",
            title="Stack Overflow",
            url="https://stackoverflow.com",
            category="Work",
            description="Q&A site for programming questions",
        ),
    ]


@pytest.fixture
def db_path(tmp_path):
    """Return path for a temporary bookmarks database."""
    return tmp_path / "test_bookmarks.db"


@pytest_asyncio.fixture
async def store(db_path):
    """Create and initialize a test bookmark store."""
    s = BookmarkStore(db_path)
    await s.initialize()
    yield s
    await s.close()
