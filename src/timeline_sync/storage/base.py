"""Interfaces of the stores a sync cycle talks to.

The reconciler only depends on these protocols; the filesystem
implementations live next to them and tests use in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..sync.models import Entry, TimelineDocument


class EntrySource(Protocol):
    """Collection of entries (notes) with structured properties."""

    def list_entries(self, scope: str) -> list[Entry]:
        """Return every entry under *scope* (a folder path)."""
        ...

    def read_raw(self, entry_id: str) -> str:
        """Return the raw text of an entry (for inline properties)."""
        ...

    def patch_properties(
        self, entry_id: str, patch: dict[str, Any]
    ) -> None:
        """Set the given properties; a ``None`` value deletes the key.

        Keys not named in *patch* must be preserved.
        """
        ...


class TimelineStore(Protocol):
    """Holder of the single timeline document."""

    def read_document(self, path: str) -> TimelineDocument: ...

    def write_document(self, path: str, text: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def create_document(self, path: str, text: str) -> None:
        """Create the document, including missing parent directories."""
        ...
