"""Bookmark record shared by the store and both engines."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from src.dates import format_timestamp, parse_timestamp


UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class Bookmark:
    """A saved URL with user-assigned metadata and reminder state.

    Instances are immutable snapshots; reminder actions go through the
    store and the collection is re-read afterwards.
    """
    id: str
    url: str
    title: str
    created_at: datetime
    category: str = UNCATEGORIZED
    description: Optional[str] = None
    favicon: Optional[str] = None
    user_id: Optional[str] = None
    last_reminded_at: Optional[datetime] = None
    reminder_dismissed: bool = False

    def __post_init__(self) -> None:
        for name in ("id", "url", "title", "category"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Bookmark {name} must be a non-empty string, got {value!r}")

        # Normalize timestamps to aware UTC (frozen, so go through object)
        created_at = parse_timestamp(self.created_at)
        object.__setattr__(self, "created_at", created_at)

        if self.last_reminded_at is not None:
            last_reminded_at = parse_timestamp(self.last_reminded_at)
            if last_reminded_at < created_at:
                raise ValueError(
                    f"Bookmark {self.id}: last_reminded_at {last_reminded_at.isoformat()} "
                    f"is before created_at {created_at.isoformat()}"
                )
            object.__setattr__(self, "last_reminded_at", last_reminded_at)

        object.__setattr__(self, "reminder_dismissed", bool(self.reminder_dismissed))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Bookmark":
        """Build a bookmark from a database row or plain dict.

        Args:
            row: Mapping with at least id, url, title and created_at

        Returns:
            Validated Bookmark

        Raises:
            ValueError: If a required field is missing or malformed
        """
        if not row.get("created_at"):
            raise ValueError(f"Bookmark {row.get('id')!r} has no created_at")

        return cls(
            id=str(row.get("id") or ""),
            url=row.get("url") or "",
            title=row.get("title") or "",
            created_at=row["created_at"],
            category=row.get("category") or UNCATEGORIZED,
            description=row.get("description") or None,
            favicon=row.get("favicon") or None,
            user_id=row.get("user_id"),
            last_reminded_at=row.get("last_reminded_at") or None,
            reminder_dismissed=bool(row.get("reminder_dismissed") or False),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "category": self.category,
            "description": self.description,
            "favicon": self.favicon,
            "created_at": format_timestamp(self.created_at),
            "last_reminded_at": format_timestamp(self.last_reminded_at),
            "reminder_dismissed": self.reminder_dismissed,
        }

    def ranking_context(self) -> Dict[str, str]:
        """The fields sent to the AI ranking service."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "category": self.category,
            "description": self.description or "",
        }
