"""Configuration for the bookmark resurface server."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class ReminderConfig:
    """Configuration for revisit reminders."""
    interval_days: int = 3  # Minimum bookmark age before the first reminder
    cooldown_days: int = 7  # Minimum gap between reminders for one bookmark

    @classmethod
    def from_env(cls) -> "ReminderConfig":
        """Create config from environment variables."""
        return cls(
            interval_days=int(os.environ.get("RESURFACE_REMINDER_INTERVAL_DAYS", "3")),
            cooldown_days=int(os.environ.get("RESURFACE_REMINDER_COOLDOWN_DAYS", "7")),
        )


@dataclass
class SearchConfig:
    """Configuration for search, including the AI ranking service."""
    ai_prefix: str = "ai:"
    ai_endpoint: Optional[str] = None  # None = AI queries always use local ranking
    ai_timeout: float = 10.0  # Seconds

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Create config from environment variables."""
        return cls(
            ai_prefix=os.environ.get("RESURFACE_AI_PREFIX", "ai:"),
            ai_endpoint=os.environ.get("RESURFACE_AI_ENDPOINT") or None,
            ai_timeout=float(os.environ.get("RESURFACE_AI_TIMEOUT", "10.0")),
        )


@dataclass
class Config:
    """Main configuration for the bookmark resurface server."""
    reminders: ReminderConfig = field(default_factory=ReminderConfig.from_env)
    search: SearchConfig = field(default_factory=SearchConfig.from_env)
    db_path: Optional[Path] = None  # None = use default
    user_id: str = "local"  # Owner of the bookmarks served by this process

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        db_path_str = os.environ.get("RESURFACE_DB_PATH")
        db_path = Path(db_path_str) if db_path_str else None

        return cls(
            reminders=ReminderConfig.from_env(),
            search=SearchConfig.from_env(),
            db_path=db_path,
            user_id=os.environ.get("RESURFACE_USER_ID", "local"),
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
