"""
Logging configuration and setup.

Console output goes to stderr: stdout is reserved for the MCP stdio transport.
"""

import logging
import sys
from pathlib import Path

from discord_mcp.config.settings import Settings


class ColoredFormatter(logging.Formatter):
    """Formatter that adds color to console output."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with color."""
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        return super().format(record)


def _configure(logger: logging.Logger, settings: Settings) -> None:
    level = getattr(logging, settings.log_level)
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(file_handler)

    logger.propagate = False


def setup_logging(settings: Settings) -> None:
    """
    Configure logging based on settings.

    Both the ``discord_mcp`` hierarchy and discord.py's own ``discord`` logger
    get the same handlers, since discord.py's default log setup is disabled.

    Args:
        settings: Application settings containing log configuration
    """
    root_logger = logging.getLogger("discord_mcp")
    _configure(root_logger, settings)
    _configure(logging.getLogger("discord"), settings)

    root_logger.info(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        root_logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    if name == "discord_mcp" or name.startswith("discord_mcp."):
        return logging.getLogger(name)
    return logging.getLogger(f"discord_mcp.{name}")
