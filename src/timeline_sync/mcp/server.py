"""MCP Server for timeline sync using stdio transport.

This module implements the Model Context Protocol server that lets AI
agents run sync cycles and inspect sync state.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..logger import setup_logging
from ..sync.engine import TimelineReconciler
from .lifespan import server_lifespan
from .tools import SYNC_TOOLS, build_error_response, handle_sync_tool

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("timeline-sync")

# Global reconciler instance (initialized in main)
_reconciler: TimelineReconciler | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_reconciler() -> TimelineReconciler:
    """Get the global TimelineReconciler instance.

    Raises:
        RuntimeError: If the reconciler is not initialized
    """
    if _reconciler is None:
        raise RuntimeError(
            "Reconciler not initialized. Server lifespan not started."
        )
    return _reconciler


def set_reconciler(reconciler: TimelineReconciler | None) -> None:
    """Set the global TimelineReconciler instance (None to clear)."""
    global _reconciler
    _reconciler = reconciler


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available sync tools."""
    return list(SYNC_TOOLS)


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution.

    Args:
        name: The name of the tool to execute.
        arguments: Tool arguments (optional).

    Returns:
        CallToolResult with tool output content and optional isError flag.
    """
    if name not in {tool.name for tool in SYNC_TOOLS}:
        return build_error_response(
            "unknown_tool",
            f"Unknown tool: {name}",
            "Use list_tools to see available tools.",
        )
    return await handle_sync_tool(name, arguments, get_reconciler())


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Sets up logging for MCP mode (file only, never stdout), loads the
    configuration via the lifespan manager, and serves JSON-RPC over stdio.

    Args:
        config_overrides: Optional dict with config values to override
            (timeline_path, notes_path, dry_run, log_file)
    """
    log_file = (
        config_overrides.get("log_file") if config_overrides else None
    )

    # Must run before stdio_server so nothing reaches stdout
    setup_logging(mode="mcp", log_file=log_file)

    # set_reconciler() is called here rather than inside the lifespan so
    # `python -m timeline_sync.mcp.server` updates this module, not a
    # second import of it.
    async with server_lifespan(
        config_overrides=config_overrides
    ) as ctx:
        set_reconciler(ctx["reconciler"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="timeline-sync",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(
                    read_stream, write_stream, init_options
                )
        finally:
            set_reconciler(None)


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Timeline Sync MCP Server - run note/timeline sync cycles over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .timeline_sync/config.yml)
  timeline-sync-mcp

  # Override paths
  timeline-sync-mcp --timeline plan.mw --notes projects

  # Never write anything
  timeline-sync-mcp --dry-run

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )
    parser.add_argument(
        "--timeline",
        help="Timeline document path (overrides TIMELINE_SYNC_TIMELINE_PATH and config files)",
    )
    parser.add_argument(
        "--notes",
        help="Notes folder path (overrides TIMELINE_SYNC_NOTES_PATH and config files)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run every cycle as a dry run",
    )
    parser.add_argument(
        "--log-file",
        default="/tmp/timeline-sync.log",
        help="Log file path (default: /tmp/timeline-sync.log)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"timeline-sync-mcp version {__version__}",
    )

    args = parser.parse_args()

    config_overrides: dict = {}
    if args.timeline:
        config_overrides["timeline_path"] = args.timeline
    if args.notes:
        config_overrides["notes_path"] = args.notes
    if args.dry_run:
        config_overrides["dry_run"] = True
    if args.log_file:
        config_overrides["log_file"] = args.log_file

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
