"""Revisit reminders for bookmarks that were saved but never looked at again.

Eligibility is a pure function of a bookmark snapshot and the current time.
ReminderSession wraps it in the one-prompt-at-a-time flow used by the host:

  IDLE --evaluate()--> PROMPTING(bookmark)
  PROMPTING --action--> RESOLVING(bookmark, action) --write done--> IDLE

After a successful write the session evaluates again, so the next eligible
bookmark (if any) is prompted straight away. Actions may also name any
listed bookmark by id; when that is the prompted one, the prompt is resolved
as usual.
"""
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional

from src.bookmark_store import BookmarkStore
from src.dates import days_between
from src.models import Bookmark


REMINDER_INTERVAL_DAYS = 3
REMINDER_COOLDOWN_DAYS = 7


def is_eligible(
    bookmark: Bookmark,
    now: datetime,
    interval_days: int = REMINDER_INTERVAL_DAYS,
    cooldown_days: int = REMINDER_COOLDOWN_DAYS,
) -> bool:
    """Check whether a bookmark should be offered as a reminder right now.

    Args:
        bookmark: Bookmark snapshot
        now: Current time
        interval_days: Minimum age before the first reminder
        cooldown_days: Minimum days since the last reminder

    Returns:
        True if the bookmark is eligible
    """
    if bookmark.reminder_dismissed:
        return False

    if days_between(now, bookmark.created_at) < interval_days:
        return False

    if bookmark.last_reminded_at is not None:
        if days_between(now, bookmark.last_reminded_at) < cooldown_days:
            return False

    return True


def find_eligible(
    bookmarks: Iterable[Bookmark],
    now: datetime,
    interval_days: int = REMINDER_INTERVAL_DAYS,
    cooldown_days: int = REMINDER_COOLDOWN_DAYS,
) -> List[Bookmark]:
    """All bookmarks currently due for a reminder, in collection order."""
    return [
        bookmark for bookmark in bookmarks
        if is_eligible(bookmark, now, interval_days, cooldown_days)
    ]


def select_reminder(
    bookmarks: Iterable[Bookmark],
    now: datetime,
    interval_days: int = REMINDER_INTERVAL_DAYS,
    cooldown_days: int = REMINDER_COOLDOWN_DAYS,
) -> Optional[Bookmark]:
    """Pick the single bookmark to remind about: the oldest eligible one.

    Ties on created_at keep collection order.
    """
    eligible = find_eligible(bookmarks, now, interval_days, cooldown_days)
    if not eligible:
        return None

    eligible.sort(key=lambda b: b.created_at)
    return eligible[0]


class ReminderAction(str, Enum):
    OPEN = "open"
    CHECK_LATER = "check_later"
    DISMISS = "dismiss"


class SessionState(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    RESOLVING = "resolving"


@dataclass
class ActionResult:
    """Outcome of a reminder action."""
    action: ReminderAction
    ok: bool
    bookmark_id: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None
    next_reminder: Optional[Bookmark] = None

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "ok": self.ok,
            "bookmark_id": self.bookmark_id,
            "url": self.url,
            "error": self.error,
            "next_reminder": self.next_reminder.to_dict() if self.next_reminder else None,
        }


class ReminderSession:
    """Holds at most one active reminder prompt for one user."""

    def __init__(
        self,
        store: BookmarkStore,
        user_id: str,
        interval_days: int = REMINDER_INTERVAL_DAYS,
        cooldown_days: int = REMINDER_COOLDOWN_DAYS,
    ):
        self.store = store
        self.user_id = user_id
        self.interval_days = interval_days
        self.cooldown_days = cooldown_days
        self._state = SessionState.IDLE
        self._current: Optional[Bookmark] = None
        self._pending_action: Optional[ReminderAction] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current(self) -> Optional[Bookmark]:
        """Bookmark being prompted or resolved, if any."""
        return self._current

    @property
    def pending_action(self) -> Optional[ReminderAction]:
        return self._pending_action

    async def pending_reminders(self, now: datetime) -> List[Bookmark]:
        """Every bookmark currently due, for the reminders list view."""
        bookmarks = await self.store.list_bookmarks(self.user_id)
        return find_eligible(bookmarks, now, self.interval_days, self.cooldown_days)

    async def evaluate(self, now: datetime) -> Optional[Bookmark]:
        """Run an evaluation pass and return the bookmark being prompted.

        An existing prompt is re-read from the store and kept while it is
        still eligible. Nothing is evaluated while an action is resolving.
        """
        if self._state is SessionState.RESOLVING:
            return None

        if self._state is SessionState.PROMPTING:
            refreshed = await self.store.get_bookmark(self._current.id, self.user_id)
            if refreshed is not None and is_eligible(
                refreshed, now, self.interval_days, self.cooldown_days
            ):
                self._current = refreshed
                return refreshed
            self._state = SessionState.IDLE
            self._current = None

        bookmarks = await self.store.list_bookmarks(self.user_id)
        bookmark = select_reminder(bookmarks, now, self.interval_days, self.cooldown_days)

        if bookmark is not None:
            self._current = bookmark
            self._state = SessionState.PROMPTING

        return bookmark

    async def open_and_snooze(
        self,
        now: datetime,
        opener: Optional[Callable[[str], object]] = None,
        bookmark_id: Optional[str] = None,
    ) -> ActionResult:
        """Open a bookmark's URL, then restart its cooldown.

        Args:
            now: Current time
            opener: Called with the URL to open it
            bookmark_id: Act on this bookmark instead of the prompted one
        """
        return await self._resolve(ReminderAction.OPEN, now, bookmark_id, opener=opener)

    async def check_later(self, now: datetime, bookmark_id: Optional[str] = None) -> ActionResult:
        """Restart a bookmark's cooldown without opening it."""
        return await self._resolve(ReminderAction.CHECK_LATER, now, bookmark_id)

    async def dismiss_permanently(self, now: datetime, bookmark_id: Optional[str] = None) -> ActionResult:
        """Stop reminding about a bookmark."""
        return await self._resolve(ReminderAction.DISMISS, now, bookmark_id)

    async def _resolve(
        self,
        action: ReminderAction,
        now: datetime,
        bookmark_id: Optional[str] = None,
        opener: Optional[Callable[[str], object]] = None,
    ) -> ActionResult:
        owns_prompt = bookmark_id is None or (
            self._current is not None and self._current.id == bookmark_id
        )

        if owns_prompt:
            if self._state is SessionState.RESOLVING:
                return ActionResult(
                    action=action,
                    ok=False,
                    bookmark_id=self._current.id,
                    error=f"Reminder is already being resolved ({self._pending_action.value})",
                )
            if self._state is not SessionState.PROMPTING:
                return ActionResult(action=action, ok=False, error="No active reminder")

            bookmark = self._current
            self._state = SessionState.RESOLVING
            self._pending_action = action
        else:
            bookmark = None

        error = None
        try:
            if bookmark is None:
                bookmark = await self.store.get_bookmark(bookmark_id, self.user_id)

            if bookmark is None:
                error = f"Bookmark {bookmark_id} not found"
            else:
                if action is ReminderAction.OPEN and opener is not None:
                    opener(bookmark.url)

                updated = await self.store.update_reminder_state(
                    bookmark.id,
                    self.user_id,
                    last_reminded_at=now,
                    reminder_dismissed=True if action is ReminderAction.DISMISS else None,
                )
                if not updated:
                    error = f"Bookmark {bookmark.id} not found"
        except Exception as e:
            error = str(e) or type(e).__name__
        finally:
            if owns_prompt:
                # The prompt is cleared even if the write failed
                self._state = SessionState.IDLE
                self._current = None
                self._pending_action = None

        target_id = bookmark.id if bookmark is not None else bookmark_id
        url = bookmark.url if bookmark is not None else None

        if error is not None:
            print(
                f"[Reminders] Failed to {action.value} reminder for {target_id}: {error}",
                file=sys.stderr,
            )
            return ActionResult(action=action, ok=False, bookmark_id=target_id, error=error, url=url)

        try:
            next_reminder = await self.evaluate(now)
        except Exception as e:
            print(f"[Reminders] Could not refresh reminders: {e}", file=sys.stderr)
            next_reminder = None

        return ActionResult(
            action=action,
            ok=True,
            bookmark_id=target_id,
            url=url,
            next_reminder=next_reminder,
        )
