"""Pydantic models for the timeline sync engine.

Defines the core data contracts used across all sync modules:

- ``Direction``: Which way a cycle synchronises.
- ``CycleStage``: States of the reconciler's cycle.
- ``Entry``: One note with its frontmatter properties.
- ``TimelineEvent``: One event line parsed from the timeline document.
- ``TimelineDocument``: Timeline text plus its modification time.
- ``CycleResult``: Outcome of one sync cycle.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class Direction(str, Enum):
    """Direction requested for a sync cycle."""

    TO_TIMELINE = "to_timeline"
    BIDIRECTIONAL = "bidirectional"


class CycleStage(str, Enum):
    """States of one reconciler cycle."""

    IDLE = "idle"
    COLLECT_AND_VALIDATE = "collect_and_validate"
    SERIALIZE = "serialize"
    COMPARE_TIMELINE = "compare_timeline"
    WRITE_TIMELINE = "write_timeline"
    SKIP_WRITE = "skip_write"
    ABORT_DRIFT = "abort_drift"
    PARSE_TIMELINE = "parse_timeline"
    APPLY_EVENTS = "apply_events"


class Entry(BaseModel):
    """A single syncable note.

    Attributes:
        id: Stable reference (note path relative to the notes root).
        title: Display title, matched against ``[[links]]`` in the timeline.
        metadata: Frontmatter properties.  Keys the engine does not know
            are carried through untouched.
        modified_at: Modification time hint; never authoritative.
    """

    id: str
    title: str
    metadata: dict[str, Any] = {}
    modified_at: float | None = None

    model_config = {"frozen": True}


class TimelineEvent(BaseModel):
    """One event parsed from the timeline document.

    Attributes:
        start_date: Canonical start date, or ``None`` if unparseable.
        end_date: Canonical end date, or ``None`` if unparseable.
        note_name: Title of the entry this event refers to.
        group: Group the event was listed under (``None`` outside groups
            and for the ``Ungrouped`` sentinel).
        status: Trailing ``#tag`` without the hash.
        line_number: 1-based line in the document (diagnostics only).
    """

    start_date: str | None
    end_date: str | None
    note_name: str
    group: str | None = None
    status: str | None = None
    line_number: int = 0

    model_config = {"frozen": True}


class TimelineDocument(BaseModel):
    """Timeline text as read from the store."""

    text: str
    modified_at: float | None = None

    model_config = {"frozen": True}


class CycleResult(BaseModel):
    """Outcome of one sync cycle.

    Attributes:
        direction: Direction that was run.
        dry_run: Whether writes were suppressed.
        updated_entry_count: Entries patched from timeline events.
        updated_entries: Titles of the patched entries.
        wrote_timeline: Whether the timeline document was (or, in a dry
            run, would have been) written.
        drift: The timeline changed since the last observed snapshot.
        warnings: Validation rejections, parse warnings and other
            non-fatal diagnostics, in the order they occurred.
        entries_seen: Entries listed by the entry source.
        entries_included: Entries that passed validation.
        events_parsed: Events parsed from the timeline.
        started_at: ISO 8601 timestamp when the cycle started.
        completed_at: ISO 8601 timestamp when the cycle completed.
    """

    direction: Direction
    dry_run: bool = False
    updated_entry_count: int = 0
    updated_entries: list[str] = []
    wrote_timeline: bool = False
    drift: bool = False
    warnings: list[str] = []
    entries_seen: int = 0
    entries_included: int = 0
    events_parsed: int = 0
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def summary(self) -> str:
        """One-line human-readable summary of the cycle."""
        parts = [
            f"{self.entries_included}/{self.entries_seen} entries",
            "timeline written" if self.wrote_timeline else "timeline unchanged",
            f"{self.updated_entry_count} entries updated",
        ]
        if self.drift:
            parts.append("drift detected")
        if self.warnings:
            parts.append(f"{len(self.warnings)} warnings")
        prefix = "[dry run] " if self.dry_run else ""
        return prefix + ", ".join(parts)
