"""SQLite store for bookmarks and their reminder state."""
import uuid
import aiosqlite
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from src.dates import format_timestamp, parse_timestamp, utcnow
from src.models import Bookmark, UNCATEGORIZED


# Default database location
DEFAULT_DB_PATH = Path.home() / ".bookmark-resurface" / "bookmarks.db"


class BookmarkStore:
    """Async SQLite store for one or more users' bookmarks.

    Every read and write is scoped by user_id; a bookmark owned by another
    user behaves exactly like a missing one.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the bookmark store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.bookmark-resurface/bookmarks.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.execute(f"""
            CREATE TABLE IF NOT EXISTS bookmarks (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                url TEXT NOT NULL,
                title TEXT NOT NULL,
                category TEXT NOT NULL DEFAULT '{UNCATEGORIZED}',
                description TEXT,
                favicon TEXT,
                created_at TEXT NOT NULL,
                last_reminded_at TEXT,
                reminder_dismissed INTEGER NOT NULL DEFAULT 0
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_bookmarks_user
            ON bookmarks(user_id, created_at DESC)
        """)

        await self._connection.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._connection

    async def add_bookmark(
        self,
        user_id: str,
        url: str,
        title: str,
        category: Optional[str] = None,
        description: Optional[str] = None,
        favicon: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Bookmark:
        """Save a new bookmark.

        Args:
            user_id: Owner of the bookmark
            url: Bookmark URL
            title: Bookmark title
            category: Category name (defaults to 'Uncategorized')
            description: Optional free-text description
            favicon: Optional favicon URL
            created_at: Creation time (defaults to now)

        Returns:
            The stored Bookmark

        Raises:
            ValueError: If url or title is empty
        """
        connection = self._require_connection()

        bookmark = Bookmark(
            id=uuid.uuid4().hex,
            user_id=user_id,
            url=url,
            title=title,
            category=category or UNCATEGORIZED,
            description=description or None,
            favicon=favicon or None,
            created_at=created_at or utcnow(),
        )

        await connection.execute("""
            INSERT INTO bookmarks (id, user_id, url, title, category, description, favicon, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            bookmark.id,
            user_id,
            bookmark.url,
            bookmark.title,
            bookmark.category,
            bookmark.description,
            bookmark.favicon,
            format_timestamp(bookmark.created_at),
        ))
        await connection.commit()

        return bookmark

    async def get_bookmark(self, bookmark_id: str, user_id: str) -> Optional[Bookmark]:
        """Get one bookmark owned by user_id.

        Returns:
            Bookmark or None if not found
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "SELECT * FROM bookmarks WHERE id = ? AND user_id = ?",
            (bookmark_id, user_id)
        )
        row = await cursor.fetchone()

        if row is None:
            return None

        return Bookmark.from_row(dict(row))

    async def list_bookmarks(self, user_id: str) -> List[Bookmark]:
        """List all bookmarks for a user, newest first.

        Args:
            user_id: Owner whose collection to load

        Returns:
            List of bookmarks

        Raises:
            ValueError: If a stored row is malformed
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "SELECT * FROM bookmarks WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,)
        )
        rows = await cursor.fetchall()

        return [Bookmark.from_row(dict(row)) for row in rows]

    async def update_bookmark(
        self,
        bookmark_id: str,
        user_id: str,
        title: Optional[str] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> bool:
        """Edit a bookmark's user metadata. created_at is never touched.

        Returns:
            True if updated, False if not found
        """
        connection = self._require_connection()

        cursor = await connection.execute("""
            UPDATE bookmarks SET
                title = COALESCE(?, title),
                category = COALESCE(?, category),
                description = COALESCE(?, description)
            WHERE id = ? AND user_id = ?
        """, (title or None, category or None, description, bookmark_id, user_id))
        await connection.commit()

        return cursor.rowcount > 0

    async def update_reminder_state(
        self,
        bookmark_id: str,
        user_id: str,
        last_reminded_at: Optional[datetime] = None,
        reminder_dismissed: Optional[bool] = None,
    ) -> bool:
        """Write reminder fields for a bookmark owned by user_id.

        Fields left as None are unchanged.

        Args:
            bookmark_id: Bookmark to update
            user_id: Owner; rows of other users are never touched
            last_reminded_at: New last-reminded timestamp
            reminder_dismissed: New dismissed flag

        Returns:
            True if a row was updated, False if not found

        Raises:
            ValueError: If last_reminded_at is before the bookmark's created_at
        """
        connection = self._require_connection()

        if last_reminded_at is not None:
            existing = await self.get_bookmark(bookmark_id, user_id)
            if existing is None:
                return False
            if parse_timestamp(last_reminded_at) < existing.created_at:
                raise ValueError(
                    f"Bookmark {bookmark_id}: last_reminded_at {format_timestamp(last_reminded_at)} "
                    f"is before created_at {format_timestamp(existing.created_at)}"
                )

        dismissed = None if reminder_dismissed is None else int(reminder_dismissed)

        cursor = await connection.execute("""
            UPDATE bookmarks SET
                last_reminded_at = COALESCE(?, last_reminded_at),
                reminder_dismissed = COALESCE(?, reminder_dismissed)
            WHERE id = ? AND user_id = ?
        """, (format_timestamp(last_reminded_at), dismissed, bookmark_id, user_id))
        await connection.commit()

        return cursor.rowcount > 0

    async def reset_reminder(self, bookmark_id: str, user_id: str) -> bool:
        """Re-enable reminders for a bookmark and clear its cooldown.

        Returns:
            True if reset, False if not found
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "UPDATE bookmarks SET reminder_dismissed = 0, last_reminded_at = NULL "
            "WHERE id = ? AND user_id = ?",
            (bookmark_id, user_id)
        )
        await connection.commit()

        return cursor.rowcount > 0

    async def delete_bookmark(self, bookmark_id: str, user_id: str) -> bool:
        """Delete a bookmark.

        Returns:
            True if deleted, False if not found
        """
        connection = self._require_connection()

        cursor = await connection.execute(
            "DELETE FROM bookmarks WHERE id = ? AND user_id = ?",
            (bookmark_id, user_id)
        )
        await connection.commit()

        return cursor.rowcount > 0


# Global store instance
_bookmark_store: Optional[BookmarkStore] = None


async def get_bookmark_store() -> BookmarkStore:
    """Get or create the global bookmark store instance.

    Returns:
        Initialized BookmarkStore
    """
    global _bookmark_store

    if _bookmark_store is None:
        from src.config import get_config
        _bookmark_store = BookmarkStore(get_config().db_path)
        await _bookmark_store.initialize()

    return _bookmark_store
