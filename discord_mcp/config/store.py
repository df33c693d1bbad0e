"""
Default-guild persistence.

The only state that outlives a single tool call is the default guild id set by
``set_guild``. It lives behind a small ``ConfigStore`` interface so the router
can be handed a file-backed store in production and an in-memory one in tests.

Loading fails soft: a missing, unreadable or malformed file yields an empty
config. Saving always rewrites the whole file (last writer wins, no locking).
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from discord_mcp.config.logging import get_logger

logger = get_logger(__name__)


class StoredConfig(BaseModel):
    """Persisted record. Unknown keys are dropped on the next save."""

    default_guild_id: str | None = Field(None, description="Default guild (server) id")

    model_config = ConfigDict(extra="ignore")


class ConfigStore(ABC):
    """Read-on-demand, write-through storage for ``StoredConfig``."""

    @abstractmethod
    def load(self) -> StoredConfig:
        """Return the stored config, or an empty one. Never raises."""

    @abstractmethod
    def save(self, config: StoredConfig) -> None:
        """Replace the stored config entirely."""


class JsonFileConfigStore(ConfigStore):
    """Stores the config as a pretty-printed JSON object in a single file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> StoredConfig:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return StoredConfig()
        except OSError as e:
            logger.warning(f"Could not read {self.path}: {e}")
            return StoredConfig()

        try:
            return StoredConfig.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring malformed config file {self.path}: {e}")
            return StoredConfig()

    def save(self, config: StoredConfig) -> None:
        self.path.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
        logger.debug(f"Saved config to {self.path}")


class InMemoryConfigStore(ConfigStore):
    """Config store without a backing file."""

    def __init__(self, config: StoredConfig | None = None):
        self._config = config.model_copy() if config else StoredConfig()

    def load(self) -> StoredConfig:
        return self._config.model_copy()

    def save(self, config: StoredConfig) -> None:
        self._config = config.model_copy()
