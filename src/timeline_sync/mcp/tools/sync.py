"""MCP tool handlers for timeline sync.

Defines two tools:

- ``timeline_sync`` -- run one sync cycle (with optional dry-run).
- ``timeline_sync_status`` -- show the timeline document and drift baseline.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...core.async_utils import run_sync
from ...errors import TimelineSyncError
from ...session import status_snapshot
from ...sync.engine import TimelineReconciler
from ...sync.models import Direction
from ...sync.reporter import (
    format_cycle_report,
    format_status,
    report_to_json,
)
from .errors import build_error_response, translate_sync_error

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


SYNC_TOOLS: list[types.Tool] = [
    types.Tool(
        name="timeline_sync",
        description=(
            "Synchronize the notes folder with the timeline document. "
            "'bidirectional' also applies dates, status and groups edited "
            "in the timeline back to the notes; 'to_timeline' only "
            "regenerates the timeline."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=False,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "direction": {
                    "type": "string",
                    "enum": [d.value for d in Direction],
                    "default": Direction.BIDIRECTIONAL.value,
                    "description": "Which way to synchronize",
                },
                "dry_run": {
                    "type": "boolean",
                    "default": False,
                    "description": "Preview changes without applying them",
                },
            },
            "required": [],
        },
    ),
    types.Tool(
        name="timeline_sync_status",
        description=(
            "Show sync state -- timeline path, last sync time, number of "
            "tracked notes, and whether the timeline changed since the last sync."
        ),
        annotations=types.ToolAnnotations(
            readOnlyHint=True,
            destructiveHint=False,
            idempotentHint=True,
            openWorldHint=False,
        ),
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
]


# ---------------------------------------------------------------------------
# Tool handler
# ---------------------------------------------------------------------------


async def handle_sync_tool(
    name: str,
    arguments: dict[str, Any] | None,
    reconciler: TimelineReconciler,
) -> types.CallToolResult:
    """Dispatch and execute a sync tool.

    Args:
        name: Tool name (``timeline_sync`` or ``timeline_sync_status``).
        arguments: Tool arguments dict.
        reconciler: Reconciler created by the server lifespan.

    Returns:
        ``CallToolResult`` with tool output or error details.
    """
    args = arguments or {}

    try:
        match name:
            case "timeline_sync":
                return await _handle_timeline_sync(args, reconciler)
            case "timeline_sync_status":
                return await _handle_timeline_sync_status(reconciler)
            case _:
                raise ValueError(f"Unknown sync tool: {name}")

    except TimelineSyncError as exc:
        logger.error("Sync tool %s failed: %s", name, exc)
        return translate_sync_error(exc)
    except ValueError as exc:
        return build_error_response(
            "validation_error",
            str(exc),
            "Check parameter values and retry.",
        )
    except Exception as exc:
        logger.exception("Sync tool error: %s", exc)
        return translate_sync_error(exc)


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


def _parse_direction(value: Any) -> Direction:
    if value is None:
        return Direction.BIDIRECTIONAL
    try:
        return Direction(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(d.value for d in Direction)
        raise ValueError(
            f"Invalid direction '{value}'. Expected one of: {allowed}"
        ) from None


async def _handle_timeline_sync(
    args: dict[str, Any],
    reconciler: TimelineReconciler,
) -> types.CallToolResult:
    """Handle the ``timeline_sync`` tool."""
    direction = _parse_direction(args.get("direction"))
    dry_run = args.get("dry_run", False)
    if not isinstance(dry_run, bool):
        raise ValueError("dry_run must be a boolean")

    result = await run_sync(
        reconciler.run_cycle,
        direction,
        dry_run or reconciler.config.dry_run,
    )

    return types.CallToolResult(
        content=[
            types.TextContent(type="text", text=format_cycle_report(result))
        ],
        structuredContent=report_to_json(result),
    )


async def _handle_timeline_sync_status(
    reconciler: TimelineReconciler,
) -> types.CallToolResult:
    """Handle the ``timeline_sync_status`` tool."""
    status = await run_sync(status_snapshot, reconciler)

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=format_status(status))],
        structuredContent=status,
    )
