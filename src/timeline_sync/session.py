"""Wire a reconciler to filesystem stores from configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from .config_schema import TimelineSyncConfig
from .storage.notes import MarkdownEntrySource
from .storage.timeline_file import FileTimelineStore
from .sync.engine import TimelineReconciler
from .sync.state import SyncState

logger = logging.getLogger(__name__)


def build_reconciler(
    config: TimelineSyncConfig, root: Path | None = None
) -> TimelineReconciler:
    """Create a reconciler over the notes folder and timeline file.

    Relative paths in *config* are resolved against *root* (default: the
    current directory).  Persisted sync state is loaded when
    ``state_dir`` is set.
    """
    root = (root or Path.cwd()).resolve()
    state_dir = root / config.state_dir if config.state_dir else None

    state = SyncState(state_dir)
    state.load()

    reconciler = TimelineReconciler(
        entry_source=MarkdownEntrySource(root, config.filtering.exclude_folders),
        timeline_store=FileTimelineStore(root),
        config=config,
        state=state,
    )
    logger.debug(
        "Reconciler ready: timeline=%s notes=%s state=%s",
        config.timeline_path,
        config.notes_path,
        state.state_path,
    )
    return reconciler


def status_snapshot(reconciler: TimelineReconciler) -> dict:
    """Describe the timeline document and the drift baseline."""
    config = reconciler.config
    store = reconciler.timeline_store
    state = reconciler.state

    exists = store.exists(config.timeline_path)
    text = store.read_document(config.timeline_path).text if exists else ""

    return {
        "timeline_path": config.timeline_path,
        "notes_path": config.notes_path,
        "timeline_exists": exists,
        "timeline_hash": SyncState.content_hash(text) if exists else None,
        "last_sync": state.last_sync,
        "tracked_entries": len(state.entry_markers),
        "drift": exists and state.has_drifted(text),
        "bidirectional": config.enable_bidirectional_sync,
        "dry_run": config.dry_run,
    }
