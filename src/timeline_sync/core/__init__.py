"""Core utilities shared by the CLI, the MCP server and the scheduler."""

from .async_utils import run_sync

__all__ = ["run_sync"]
