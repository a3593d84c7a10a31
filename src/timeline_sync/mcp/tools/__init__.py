"""MCP tool handlers for timeline sync.

This package contains MCP tool implementations that wrap the reconciler
with async handlers and structured error responses.
"""

from .errors import build_error_response
from .sync import SYNC_TOOLS, handle_sync_tool

__all__ = [
    "SYNC_TOOLS",
    "build_error_response",
    "handle_sync_tool",
]
