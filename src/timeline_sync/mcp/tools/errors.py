"""Error response builders for MCP tool handlers.

Structured error responses carry a corrective action so an agent can
recover without human intervention.
"""

import mcp.types as types
from pydantic import ValidationError

from ...errors import CycleInProgressError, StoreFailure, TimelineSyncError


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (validation_error, cycle_in_progress,
            store_error, config_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("validation_error", "Unknown direction 'up'", "Use 'bidirectional' or 'to_timeline'.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_sync_error(error: Exception) -> types.CallToolResult:
    """Translate a cycle or configuration failure into an error response."""
    match error:
        case CycleInProgressError():
            return build_error_response(
                "cycle_in_progress",
                str(error),
                "Wait for the running cycle to finish, then retry.",
            )
        case StoreFailure(operation="list"):
            return build_error_response(
                "store_error",
                str(error),
                "Check that sync.notes_path points to an existing folder.",
            )
        case StoreFailure():
            return build_error_response(
                "store_error",
                str(error),
                "Check that the timeline and note files are readable and writable, then retry.",
            )
        case TimelineSyncError():
            return build_error_response(
                "sync_error", str(error), "Retry the sync."
            )
        case ValidationError():
            return build_error_response(
                "config_error",
                str(error),
                "Fix the sync configuration file (.timeline_sync/config.yml).",
            )
        case _:
            return build_error_response(
                "server_error",
                str(error),
                "Check the server log for details and retry.",
            )
