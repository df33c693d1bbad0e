"""
discord-mcp CLI entry point.

Without a sub-command the MCP server is started, which is how MCP hosts
launch it. ``config`` and ``tools`` are for humans checking a setup.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from discord_mcp import __version__
from discord_mcp.config.logging import get_logger, setup_logging
from discord_mcp.config.settings import load_settings


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="discord-mcp",
        description="MCP server exposing Discord guild administration as tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"discord-mcp {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "run",
        help="Connect to Discord and serve MCP over stdio (default)",
    )

    subparsers.add_parser(
        "config",
        help="Show current configuration",
    )

    tools_parser = subparsers.add_parser(
        "tools",
        help="List the tools this server exposes",
    )
    tools_parser.add_argument(
        "--schema",
        action="store_true",
        help="Also print each tool's JSON input schema",
    )

    return parser


def cmd_config(settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    logger.info("\n=== discord-mcp Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"State File: {settings.state_file}")
    logger.info(f"Batch Concurrency: {settings.batch_concurrency or 'unlimited'}")
    logger.info(f"\nDiscord Bot Token: {'Set' if settings.discord.bot_token else 'Not set'}")
    logger.info(f"Presence Intent: {settings.discord.presence_intent}")

    return 0


def cmd_tools(args) -> int:
    """Print registered tools to stdout."""
    import json

    from discord_mcp.tools import registry

    for tool in registry:
        print(f"{tool.name:22} {tool.description}")
        if args.schema:
            print(json.dumps(tool.input_schema(), indent=2))
    return 0


def cmd_run(settings) -> int:
    """Start the MCP server."""
    logger = get_logger(__name__)

    if not settings.discord.bot_token:
        logger.error("DISCORD_BOT_TOKEN environment variable is required")
        return 1

    from discord_mcp.server import serve

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "tools":
        return cmd_tools(args)
    else:
        return cmd_run(settings)


if __name__ == "__main__":
    sys.exit(main())
