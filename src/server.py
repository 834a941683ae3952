"""MCP server exposing bookmark search and revisit reminders."""
import json
import sys
from pathlib import Path
from typing import Any, Optional

# Add project root to Python path for absolute imports
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from src.ai_ranker import get_ranking_client
from src.bookmark_store import get_bookmark_store
from src.config import get_config
from src.dates import utcnow
from src.reminders import ReminderAction, ReminderSession
from src.search import list_categories, search_bookmarks


# Global state
_reminder_session: Optional[ReminderSession] = None


def _text(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def _json(data: Any) -> list[TextContent]:
    return _text(json.dumps(data, indent=2))


async def get_reminder_session() -> ReminderSession:
    """Get or create the reminder session for the configured user."""
    global _reminder_session

    if _reminder_session is None:
        config = get_config()
        _reminder_session = ReminderSession(
            await get_bookmark_store(),
            config.user_id,
            interval_days=config.reminders.interval_days,
            cooldown_days=config.reminders.cooldown_days,
        )

    return _reminder_session


async def search_bookmarks_tool(
    query: str,
    category: Optional[str] = None,
    plain: bool = False,
) -> list[TextContent]:
    """Tool handler for search_bookmarks.

    Args:
        query: Search query, prefixed with 'ai:' for AI ranking
        category: Optional category filter
        plain: Use plain substring matching

    Returns:
        List of TextContent with bookmark results
    """
    config = get_config()
    store = await get_bookmark_store()
    bookmarks = await store.list_bookmarks(config.user_id)

    if not bookmarks:
        return _text("No bookmarks saved yet.")

    results = await search_bookmarks(
        query,
        bookmarks,
        ranker=get_ranking_client(),
        category=category,
        ai_prefix=config.search.ai_prefix,
        plain=plain,
    )

    if not results:
        return _text(f"No bookmarks found matching query: {query}")

    return _json([b.to_dict() for b in results])


async def list_bookmarks_tool() -> list[TextContent]:
    """Tool handler for list_bookmarks."""
    store = await get_bookmark_store()
    bookmarks = await store.list_bookmarks(get_config().user_id)
    return _json([b.to_dict() for b in bookmarks])


async def add_bookmark_tool(
    url: str,
    title: str,
    category: Optional[str] = None,
    description: Optional[str] = None,
    favicon: Optional[str] = None,
) -> list[TextContent]:
    """Tool handler for add_bookmark."""
    store = await get_bookmark_store()
    try:
        bookmark = await store.add_bookmark(
            get_config().user_id,
            url=url,
            title=title,
            category=category,
            description=description,
            favicon=favicon,
        )
    except ValueError as e:
        return _text(f"Error: {e}")

    return _json(bookmark.to_dict())


async def update_bookmark_tool(
    bookmark_id: str,
    title: Optional[str] = None,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> list[TextContent]:
    """Tool handler for update_bookmark. Fields left out are unchanged."""
    config = get_config()
    store = await get_bookmark_store()
    updated = await store.update_bookmark(
        bookmark_id,
        config.user_id,
        title=title,
        category=category,
        description=description,
    )

    if not updated:
        return _text(f"Error: bookmark not found: {bookmark_id}")

    bookmark = await store.get_bookmark(bookmark_id, config.user_id)
    return _json(bookmark.to_dict())


async def delete_bookmark_tool(bookmark_id: str) -> list[TextContent]:
    """Tool handler for delete_bookmark."""
    store = await get_bookmark_store()
    deleted = await store.delete_bookmark(bookmark_id, get_config().user_id)

    if not deleted:
        return _text(f"Error: bookmark not found: {bookmark_id}")

    return _json({"bookmark_id": bookmark_id, "deleted": True})


async def list_categories_tool() -> list[TextContent]:
    """Tool handler for list_categories."""
    store = await get_bookmark_store()
    bookmarks = await store.list_bookmarks(get_config().user_id)
    return _json(list_categories(bookmarks))


async def get_reminder_tool() -> list[TextContent]:
    """Tool handler for get_reminder: the bookmark to revisit now, if any."""
    session = await get_reminder_session()
    bookmark = await session.evaluate(utcnow())

    if bookmark is None:
        return _text("No reminders right now.")

    return _json({"state": session.state.value, "reminder": bookmark.to_dict()})


async def list_pending_reminders_tool() -> list[TextContent]:
    """Tool handler for list_pending_reminders."""
    session = await get_reminder_session()
    pending = await session.pending_reminders(utcnow())
    pending.sort(key=lambda b: b.created_at)
    return _json([b.to_dict() for b in pending])


async def reminder_action_tool(action: str, bookmark_id: Optional[str] = None) -> list[TextContent]:
    """Tool handler for reminder_action.

    Args:
        action: 'open', 'check_later' or 'dismiss'
        bookmark_id: Act on this listed bookmark instead of the current reminder

    Returns:
        JSON result, including the next reminder when one is due
    """
    try:
        reminder_action = ReminderAction(action)
    except ValueError:
        valid = ", ".join(a.value for a in ReminderAction)
        return _text(f"Error: unknown action '{action}'. Use one of: {valid}")

    session = await get_reminder_session()
    now = utcnow()

    if reminder_action is ReminderAction.OPEN:
        result = await session.open_and_snooze(now, bookmark_id=bookmark_id)
    elif reminder_action is ReminderAction.CHECK_LATER:
        result = await session.check_later(now, bookmark_id=bookmark_id)
    else:
        result = await session.dismiss_permanently(now, bookmark_id=bookmark_id)

    data = result.to_dict()
    if reminder_action is ReminderAction.OPEN and result.ok and result.url:
        # The agent opens the page; this server has no browser
        data["open_url"] = result.url

    return _json(data)


async def reenable_reminder_tool(bookmark_id: str) -> list[TextContent]:
    """Tool handler for reenable_reminder."""
    store = await get_bookmark_store()
    reset = await store.reset_reminder(bookmark_id, get_config().user_id)

    if not reset:
        return _text(f"Error: bookmark not found: {bookmark_id}")

    return _json({"bookmark_id": bookmark_id, "reminder_dismissed": False})


def create_server() -> Server:
    """Create and configure the MCP server.

    Returns:
        Configured Server instance
    """
    server = Server("bookmark-resurface-mcp")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="search_bookmarks",
                description="Search saved bookmarks by title, URL, category and description. Results are ranked by relevance. Prefix the query with 'ai:' to rank with the AI search service.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Search query"
                        },
                        "category": {
                            "type": "string",
                            "description": "Only search this category"
                        },
                        "plain": {
                            "type": "boolean",
                            "description": "Plain substring match instead of ranked fuzzy match"
                        }
                    },
                    "required": ["query"]
                }
            ),
            Tool(
                name="list_bookmarks",
                description="List all saved bookmarks, newest first.",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="add_bookmark",
                description="Save a new bookmark.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "url": {"type": "string"},
                        "title": {"type": "string"},
                        "category": {"type": "string"},
                        "description": {"type": "string"},
                        "favicon": {"type": "string"}
                    },
                    "required": ["url", "title"]
                }
            ),
            Tool(
                name="update_bookmark",
                description="Edit a bookmark's title, category or description. Fields left out are unchanged.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "bookmark_id": {"type": "string"},
                        "title": {"type": "string"},
                        "category": {"type": "string"},
                        "description": {"type": "string"}
                    },
                    "required": ["bookmark_id"]
                }
            ),
            Tool(
                name="delete_bookmark",
                description="Delete a saved bookmark.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "bookmark_id": {"type": "string"}
                    },
                    "required": ["bookmark_id"]
                }
            ),
            Tool(
                name="list_categories",
                description="List bookmark categories with counts.",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="get_reminder",
                description="Get the saved bookmark that is due for a revisit reminder, if any.",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="list_pending_reminders",
                description="List every bookmark currently due for a revisit reminder.",
                inputSchema={"type": "object", "properties": {}}
            ),
            Tool(
                name="reminder_action",
                description="Resolve the current reminder: 'open' (open it and snooze), 'check_later' (snooze), or 'dismiss' (never remind again). Pass bookmark_id to act on any listed bookmark instead.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "action": {
                            "type": "string",
                            "enum": [a.value for a in ReminderAction]
                        },
                        "bookmark_id": {
                            "type": "string",
                            "description": "Bookmark to act on; defaults to the current reminder"
                        }
                    },
                    "required": ["action"]
                }
            ),
            Tool(
                name="reenable_reminder",
                description="Turn reminders back on for a bookmark that was dismissed.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "bookmark_id": {"type": "string"}
                    },
                    "required": ["bookmark_id"]
                }
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}

        if name == "search_bookmarks":
            query = arguments.get("query", "")
            return await search_bookmarks_tool(
                query,
                category=arguments.get("category"),
                plain=bool(arguments.get("plain", False)),
            )
        elif name == "list_bookmarks":
            return await list_bookmarks_tool()
        elif name == "add_bookmark":
            url = arguments.get("url", "")
            title = arguments.get("title", "")
            if not url or not title:
                return _text("Error: 'url' and 'title' parameters are required")
            return await add_bookmark_tool(
                url,
                title,
                category=arguments.get("category"),
                description=arguments.get("description"),
                favicon=arguments.get("favicon"),
            )
        elif name == "update_bookmark":
            bookmark_id = arguments.get("bookmark_id", "")
            if not bookmark_id:
                return _text("Error: 'bookmark_id' parameter is required")
            return await update_bookmark_tool(
                bookmark_id,
                title=arguments.get("title"),
                category=arguments.get("category"),
                description=arguments.get("description"),
            )
        elif name == "delete_bookmark":
            bookmark_id = arguments.get("bookmark_id", "")
            if not bookmark_id:
                return _text("Error: 'bookmark_id' parameter is required")
            return await delete_bookmark_tool(bookmark_id)
        elif name == "list_categories":
            return await list_categories_tool()
        elif name == "get_reminder":
            return await get_reminder_tool()
        elif name == "list_pending_reminders":
            return await list_pending_reminders_tool()
        elif name == "reminder_action":
            return await reminder_action_tool(
                arguments.get("action", ""),
                bookmark_id=arguments.get("bookmark_id") or None,
            )
        elif name == "reenable_reminder":
            bookmark_id = arguments.get("bookmark_id", "")
            if not bookmark_id:
                return _text("Error: 'bookmark_id' parameter is required")
            return await reenable_reminder_tool(bookmark_id)
        else:
            raise ValueError(f"Unknown tool: {name}")

    return server


async def main():
    """Main entry point for the MCP server."""
    server = create_server()

    async with stdio_server() as (read_stream, write_stream):
        initialization_options = server.create_initialization_options()
        await server.run(read_stream, write_stream, initialization_options)
