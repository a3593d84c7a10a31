"""Tests for mcp/tools/errors.py - error response builders.

Covers:
- build_error_response() structure and format
- translate_sync_error() mapping from failures to error types
"""

import mcp.types as types
import pytest
from pydantic import ValidationError

from timeline_sync.config_schema import TimelineSyncConfig
from timeline_sync.errors import (
    CycleInProgressError,
    StoreFailure,
    TimelineSyncError,
)
from timeline_sync.mcp.tools.errors import (
    build_error_response,
    translate_sync_error,
)


def _get_error_text(result: types.CallToolResult) -> str:
    """Extract text from first content item with type narrowing for Pyright."""
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


# ---------------------------------------------------------------------------
# build_error_response tests
# ---------------------------------------------------------------------------


class TestBuildErrorResponse:
    """Tests for build_error_response()."""

    def test_structure(self):
        result = build_error_response("store_error", "Disk full", "Free space")
        assert isinstance(result, types.CallToolResult)
        assert result.isError is True
        assert len(result.content) == 1

    def test_error_format(self):
        """Text format is 'Error ({type}): {message}\\n\\nAction: {action}'."""
        result = build_error_response("store_error", "Disk full", "Free space")
        assert _get_error_text(result) == (
            "Error (store_error): Disk full\n\nAction: Free space"
        )


# ---------------------------------------------------------------------------
# translate_sync_error tests
# ---------------------------------------------------------------------------


class TestTranslateSyncError:
    """Tests for translate_sync_error()."""

    def test_cycle_in_progress(self):
        text = _get_error_text(translate_sync_error(CycleInProgressError()))
        assert text.startswith("Error (cycle_in_progress): A sync cycle is already in progress")
        assert "Wait for the running cycle" in text

    def test_missing_notes_folder(self):
        error = StoreFailure("list", "/vault/notes", "notes folder not found")
        text = _get_error_text(translate_sync_error(error))
        assert "store_error" in text
        assert "list failed for /vault/notes" in text
        assert "sync.notes_path" in text

    def test_other_store_failure(self):
        error = StoreFailure("patch", "notes/A.md", "read-only file system")
        text = _get_error_text(translate_sync_error(error))
        assert "store_error" in text
        assert "readable and writable" in text

    def test_generic_sync_error(self):
        text = _get_error_text(translate_sync_error(TimelineSyncError("odd")))
        assert text.startswith("Error (sync_error): odd")

    def test_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            TimelineSyncConfig(grouping={"sort_by": "size"})
        text = _get_error_text(translate_sync_error(exc_info.value))
        assert "config_error" in text

    def test_unexpected_error(self):
        text = _get_error_text(translate_sync_error(RuntimeError("boom")))
        assert text.startswith("Error (server_error): boom")
