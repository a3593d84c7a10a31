"""Shared pytest fixtures for timeline-sync tests."""

from __future__ import annotations

from typing import Any

import pytest
from dotenv import load_dotenv

from timeline_sync.config_schema import TimelineSyncConfig
from timeline_sync.errors import StoreFailure
from timeline_sync.sync.models import Entry, TimelineDocument
from timeline_sync.sync.state import SyncState

load_dotenv()


class FakeEntrySource:
    """In-memory entry source recording every patch."""

    def __init__(self, entries: list[Entry] | None = None) -> None:
        self.entries: dict[str, Entry] = {e.id: e for e in entries or []}
        self.raw: dict[str, str] = {}
        self.patches: list[tuple[str, dict[str, Any]]] = []
        self.fail_patch = False

    def add(self, title: str, modified_at: float | None = None, **metadata: Any) -> Entry:
        entry = Entry(
            id=f"notes/{title}.md",
            title=title,
            metadata=metadata,
            modified_at=modified_at,
        )
        self.entries[entry.id] = entry
        return entry

    def get(self, title: str) -> Entry:
        return self.entries[f"notes/{title}.md"]

    def list_entries(self, scope: str) -> list[Entry]:
        return [self.entries[k] for k in sorted(self.entries)]

    def read_raw(self, entry_id: str) -> str:
        return self.raw.get(entry_id, "")

    def patch_properties(self, entry_id: str, patch: dict[str, Any]) -> None:
        if self.fail_patch:
            raise StoreFailure("patch", entry_id, "disk full")
        self.patches.append((entry_id, dict(patch)))
        entry = self.entries[entry_id]
        metadata = dict(entry.metadata)
        for key, value in patch.items():
            if value is None:
                metadata.pop(key, None)
            else:
                metadata[key] = value
        self.entries[entry_id] = entry.model_copy(update={"metadata": metadata})


class FakeTimelineStore:
    """In-memory timeline document; ``text is None`` means missing."""

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.writes: list[str] = []
        self.created = False
        self.fail_write = False

    def exists(self, path: str) -> bool:
        return self.text is not None

    def read_document(self, path: str) -> TimelineDocument:
        if self.text is None:
            raise StoreFailure("read", path, "missing")
        return TimelineDocument(text=self.text, modified_at=1.0)

    def write_document(self, path: str, text: str) -> None:
        if self.fail_write:
            raise StoreFailure("write", path, "read-only")
        self.writes.append(text)
        self.text = text

    def create_document(self, path: str, text: str) -> None:
        self.created = True
        self.writes.append(text)
        self.text = text


@pytest.fixture
def make_config():
    """Factory for ``TimelineSyncConfig`` with nested section overrides."""

    def _make(**overrides: Any) -> TimelineSyncConfig:
        overrides.setdefault("state_dir", None)
        return TimelineSyncConfig(**overrides)

    return _make


@pytest.fixture
def config(make_config) -> TimelineSyncConfig:
    return make_config()


@pytest.fixture
def entry_source() -> FakeEntrySource:
    return FakeEntrySource()


@pytest.fixture
def timeline_store() -> FakeTimelineStore:
    return FakeTimelineStore()


@pytest.fixture
def sync_state() -> SyncState:
    return SyncState()
