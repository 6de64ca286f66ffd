"""
Configuration for quote-bot.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DB_PATH = Path("database.sqlite")


@dataclass
class DiscordConfig:
    """Discord gateway configuration."""

    token: str | None = None
    token_env: str | None = "DISCORD_TOKEN"
    guild_id: int | None = None  # Register commands in this guild too

    def get_token(self) -> str | None:
        """Get bot token from config or environment."""
        if self.token:
            return self.token
        if self.token_env:
            return os.environ.get(self.token_env) or None
        return None


@dataclass
class DatabaseConfig:
    """SQLite store configuration."""

    path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    max_connections: int = 5
    timeout_seconds: float | None = None  # None blocks until a connection frees up


@dataclass
class BotConfig:
    """Complete quote-bot configuration."""

    discord: DiscordConfig = field(default_factory=DiscordConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BotConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "log_level" in data:
            config.log_level = str(data["log_level"]).upper()

        if "discord" in data:
            discord = data["discord"] or {}
            guild_id = discord.get("guild_id")
            config.discord = DiscordConfig(
                token=discord.get("token"),
                token_env=discord.get("token_env", "DISCORD_TOKEN"),
                guild_id=int(guild_id) if guild_id is not None else None,
            )

        if "database" in data:
            db = data["database"] or {}
            config.database = DatabaseConfig(
                path=Path(db.get("path", DEFAULT_DB_PATH)),
                max_connections=db.get("max_connections", 5),
                timeout_seconds=db.get("timeout_seconds"),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "BotConfig":
        """Load config from a YAML file, or return defaults if it is missing."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get("quote_bot", {}) or {})

    @property
    def db_path(self) -> Path:
        return self.database.path

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary. The token itself is never included."""
        return {
            "log_level": self.log_level,
            "discord": {
                "token_env": self.discord.token_env,
                "guild_id": self.discord.guild_id,
            },
            "database": {
                "path": str(self.database.path),
                "max_connections": self.database.max_connections,
                "timeout_seconds": self.database.timeout_seconds,
            },
        }
