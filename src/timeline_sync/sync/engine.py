"""Reconciler that runs one full timeline sync cycle.

The ``TimelineReconciler`` ties together the validator, serializer,
parser and sync state.  One call to ``run_cycle()``:

1. Collects entries from the entry source and validates them.
2. Serializes the included entries into timeline text.
3. Compares the result with the stored document (creating it if missing).
4. Writes the document, skips the write, or aborts it on drift.  While
   bidirectional sync is enabled the drift guard applies to every cycle,
   including to-timeline ones.
5. For bidirectional cycles, parses the document and patches entries
   whose dates, status or group differ from their timeline event.
6. Records the observed document text as the new drift baseline.  A
   successful write is recorded immediately, so a later failure does not
   leave the baseline behind the store.

Validation and parse problems become warnings on the ``CycleResult``.
A ``StoreFailure`` aborts the cycle; apart from a completed timeline
write, the sync state is left untouched.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ..config_schema import TimelineSyncConfig
from ..errors import CycleInProgressError
from ..frontmatter import extract_inline_properties
from .dates import normalize_date
from .models import CycleResult, CycleStage, Direction, Entry, TimelineEvent
from .parser import parse_timeline
from .serializer import UNGROUPED, group_name, serialize_timeline, status_tag
from .state import SyncState
from .validator import validate_entry

if TYPE_CHECKING:
    from ..storage.base import EntrySource, TimelineStore

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _Cycle:
    """Mutable bookkeeping for one cycle; frozen into a ``CycleResult``."""

    def __init__(self, direction: Direction, dry_run: bool) -> None:
        self.direction = direction
        self.dry_run = dry_run
        self.started_at = _now()
        self.stage = CycleStage.IDLE
        self.warnings: list[str] = []
        self.updated: list[str] = []
        self.wrote = False
        self.drift = False
        self.seen = 0
        self.included = 0
        self.events = 0

    def enter(self, stage: CycleStage) -> None:
        logger.debug("Cycle stage: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def result(self) -> CycleResult:
        return CycleResult(
            direction=self.direction,
            dry_run=self.dry_run,
            updated_entry_count=len(self.updated),
            updated_entries=list(self.updated),
            wrote_timeline=self.wrote,
            drift=self.drift,
            warnings=list(self.warnings),
            entries_seen=self.seen,
            entries_included=self.included,
            events_parsed=self.events,
            started_at=self.started_at,
            completed_at=_now(),
        )


class TimelineReconciler:
    """Synchronise a notes collection with a single timeline document.

    Args:
        entry_source: Where entries are listed, read and patched.
        timeline_store: Where the timeline document lives.
        config: Sync configuration (immutable).
        state: Drift baseline and entry markers for this session.
    """

    def __init__(
        self,
        entry_source: EntrySource,
        timeline_store: TimelineStore,
        config: TimelineSyncConfig,
        state: SyncState,
    ) -> None:
        self.entry_source = entry_source
        self.timeline_store = timeline_store
        self.config = config
        self.state = state
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run_cycle(
        self,
        direction: Direction = Direction.BIDIRECTIONAL,
        dry_run: bool | None = None,
    ) -> CycleResult:
        """Run one sync cycle.

        Args:
            direction: ``TO_TIMELINE`` only writes the timeline;
                ``BIDIRECTIONAL`` also applies timeline edits to entries
                (when ``enable_bidirectional_sync`` is on).
            dry_run: Override ``config.dry_run``.  A dry run performs no
                store writes and leaves the sync state unchanged.

        Returns:
            The ``CycleResult`` of the cycle.

        Raises:
            CycleInProgressError: If another cycle is running.
            StoreFailure: If a store read or write fails.
        """
        if not self._lock.acquire(blocking=False):
            raise CycleInProgressError()
        try:
            cycle = _Cycle(
                direction,
                self.config.dry_run if dry_run is None else dry_run,
            )
            self._run(cycle)
            cycle.enter(CycleStage.IDLE)
        finally:
            self._lock.release()

        result = cycle.result()
        logger.info("Sync cycle finished: %s", result.summary())
        return result

    def _run(self, cycle: _Cycle) -> None:
        config = self.config
        bidirectional = (
            cycle.direction == Direction.BIDIRECTIONAL
            and config.enable_bidirectional_sync
        )
        strict = bidirectional and config.bidirectional.sync_dates

        cycle.enter(CycleStage.COLLECT_AND_VALIDATE)
        entries = self.entry_source.list_entries(config.notes_path)
        entries = [self._with_inline_properties(e) for e in entries]
        cycle.seen = len(entries)
        included = self._validate(entries, strict, cycle)
        cycle.included = len(included)

        cycle.enter(CycleStage.SERIALIZE)
        serialized = serialize_timeline(included, config)

        cycle.enter(CycleStage.COMPARE_TIMELINE)
        document_text = self._compare_and_write(
            serialized, config.enable_bidirectional_sync, entries, cycle
        )

        if bidirectional:
            cycle.enter(CycleStage.PARSE_TIMELINE)
            parsed = parse_timeline(document_text, config)
            cycle.events = len(parsed.events)
            for message in parsed.warnings:
                cycle.warn(message)

            cycle.enter(CycleStage.APPLY_EVENTS)
            self._apply_events(parsed.events, entries, cycle)

        if not cycle.dry_run:
            # An external edit nobody applied stays drifted.
            if bidirectional or not cycle.drift:
                self.state.observe_timeline(document_text)
            for entry in entries:
                self.state.record_entry(entry.id, entry.modified_at)
            self.state.save()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _with_inline_properties(self, entry: Entry) -> Entry:
        if not self.config.properties.allow_inline_properties:
            return entry
        inline = extract_inline_properties(self.entry_source.read_raw(entry.id))
        if not inline:
            return entry
        merged = {**inline, **entry.metadata}
        return entry.model_copy(update={"metadata": merged})

    def _validate(
        self, entries: list[Entry], strict: bool, cycle: _Cycle
    ) -> list[Entry]:
        included: list[Entry] = []
        for entry in entries:
            ok, reason = validate_entry(entry.metadata, self.config, strict)
            if ok:
                included.append(entry)
                continue
            message = f"Skipped '{entry.title}': {reason}"
            logger.info(message)
            cycle.warn(message)
        return included

    def _compare_and_write(
        self,
        serialized: str,
        guard_drift: bool,
        entries: list[Entry],
        cycle: _Cycle,
    ) -> str:
        """Write the timeline if needed; return the text now in the store.

        With *guard_drift* set, a document edited since the last observed
        snapshot is never overwritten, whatever the cycle direction.
        """
        path = self.config.timeline_path
        store = self.timeline_store

        if not store.exists(path):
            cycle.enter(CycleStage.WRITE_TIMELINE)
            if not cycle.dry_run:
                store.create_document(path, serialized)
                self._observe_written(serialized)
            cycle.wrote = True
            return serialized

        current = store.read_document(path).text

        if guard_drift and self.state.has_drifted(current):
            cycle.enter(CycleStage.ABORT_DRIFT)
            cycle.drift = True
            deferred = [
                e.title
                for e in entries
                if self.state.modified_since_last_cycle(e.id, e.modified_at)
            ]
            logger.warning(
                "Timeline %s changed since the last sync; not overwriting it",
                path,
            )
            if deferred:
                logger.warning(
                    "Deferred entry changes until the next cycle: %s",
                    ", ".join(deferred),
                )
            return current

        if serialized.strip() == current.strip():
            cycle.enter(CycleStage.SKIP_WRITE)
            return current

        cycle.enter(CycleStage.WRITE_TIMELINE)
        if not cycle.dry_run:
            store.write_document(path, serialized)
            self._observe_written(serialized)
        cycle.wrote = True
        return serialized

    def _observe_written(self, text: str) -> None:
        # The store now holds our text; later stages may still fail.
        self.state.observe_timeline(text)
        self.state.save()

    def _apply_events(
        self,
        events: list[TimelineEvent],
        entries: list[Entry],
        cycle: _Cycle,
    ) -> None:
        by_title: dict[str, list[Entry]] = {}
        for entry in entries:
            by_title.setdefault(entry.title, []).append(entry)

        for event in events:
            matches = by_title.get(event.note_name, [])
            if not matches:
                logger.debug("No entry for [[%s]], skipped", event.note_name)
                continue
            if len(matches) > 1:
                message = (
                    f"Line {event.line_number}: [[{event.note_name}]] matches "
                    f"{len(matches)} entries, skipped"
                )
                logger.warning(message)
                cycle.warn(message)
                continue

            entry = matches[0]
            patch = self.build_patch(entry, event)
            if not patch:
                continue
            if not cycle.dry_run:
                self.entry_source.patch_properties(entry.id, patch)
            cycle.updated.append(entry.title)

    # ------------------------------------------------------------------
    # Patch computation
    # ------------------------------------------------------------------

    def build_patch(
        self, entry: Entry, event: TimelineEvent
    ) -> dict[str, Any]:
        """Properties of *entry* that must change to match *event*.

        Only toggled fields are compared, and only after canonicalization,
        so equivalent values (``2024`` vs ``2024-01-01``) never trigger a
        write.  A ``None`` value in the patch deletes the property.
        """
        config = self.config
        props = config.properties
        toggles = config.bidirectional
        date_format = config.formatting.date_format
        metadata = entry.metadata
        patch: dict[str, Any] = {}

        if toggles.sync_dates:
            for prop, new, is_end in (
                (props.date_property, event.start_date, False),
                (props.end_date_property, event.end_date, True),
            ):
                if new is None:
                    continue
                current = normalize_date(metadata.get(prop), is_end, date_format)
                if current != new:
                    patch[prop] = new

        if toggles.sync_status and config.formatting.show_status_tags:
            current_status = metadata.get(props.status_property)
            if status_tag(current_status) != event.status:
                if event.status is not None:
                    patch[props.status_property] = event.status
                elif current_status is not None:
                    patch[props.status_property] = None

        if toggles.sync_group and config.grouping.enabled:
            current_group = metadata.get(props.group_property)
            current_name = group_name(current_group)
            if current_name == UNGROUPED:
                current_name = None
            if current_name != event.group:
                if event.group is not None:
                    patch[props.group_property] = event.group
                elif current_group is not None:
                    patch[props.group_property] = None

        return patch
