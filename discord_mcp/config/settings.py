"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscordSettings(BaseSettings):
    """Discord gateway configuration."""

    bot_token: str = Field(default="", description="Discord bot token (DISCORD_BOT_TOKEN)")
    presence_intent: bool = Field(
        default=True,
        description="Request the privileged presence intent. "
                    "Needed for online member counts in server_analysis.",
    )

    model_config = SettingsConfigDict(
        env_prefix="DISCORD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="production", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Default-guild persistence
    state_file: Path = Field(
        default=Path(".discord-mcp-config.json"),
        description="JSON file holding the default guild id set via set_guild",
    )

    # Batch tools
    batch_concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Maximum concurrent Discord calls per batch tool. None means unlimited.",
    )

    # Sub-configurations
    discord: DiscordSettings = Field(default_factory=DiscordSettings)

    model_config = SettingsConfigDict(
        env_prefix="DISCORD_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        # DiscordSettings is loaded on its own and reads the same file
        _settings = Settings(_env_file=env_file, discord=DiscordSettings(_env_file=env_file))
    else:
        _settings = Settings()
    return _settings
