"""Sync state: the last observed timeline snapshot.

``SyncState`` remembers the timeline text the reconciler last wrote or
read.  A cycle that finds different text in the store knows someone else
edited the document in between (drift) and refrains from overwriting it.

Key design choices:

* **Observed, never speculative** -- ``observe_timeline()`` is only called
  after a write or read the reconciler actually performed.
* **Optional persistence** -- with a ``state_dir`` the snapshot is saved
  to ``timeline_state.json`` so separate CLI invocations share one
  baseline.  Without it the state lives for the session only.
* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from ..errors import StoreFailure

logger = logging.getLogger(__name__)

STATE_FILENAME = "timeline_state.json"
STATE_VERSION = 1


class SyncState:
    """Last observed timeline text and per-entry modification hints.

    Args:
        state_dir: Directory for the persisted state file, or ``None`` to
            keep the state in memory only.
    """

    def __init__(self, state_dir: Path | None = None) -> None:
        self._state_dir = state_dir
        self.last_timeline: str = ""
        self.entry_markers: dict[str, float] = {}
        self.last_sync: str | None = None

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def observe_timeline(self, text: str) -> None:
        """Record *text* as the timeline content last written or read."""
        self.last_timeline = text
        self.last_sync = datetime.now(timezone.utc).isoformat()

    def has_drifted(self, current_text: str) -> bool:
        """Return ``True`` if *current_text* differs from a known snapshot.

        An empty snapshot (first cycle of a session) never counts as drift.
        """
        return bool(self.last_timeline) and self.last_timeline != current_text

    # ------------------------------------------------------------------
    # Entry hints
    # ------------------------------------------------------------------

    def record_entry(self, entry_id: str, modified_at: float | None) -> None:
        if modified_at is not None:
            self.entry_markers[entry_id] = modified_at

    def modified_since_last_cycle(
        self, entry_id: str, modified_at: float | None
    ) -> bool:
        """Return ``True`` if the entry changed after it was last recorded.

        Unknown entries or missing timestamps count as unchanged; the
        marker is a hint for diagnostics only.
        """
        known = self.entry_markers.get(entry_id)
        if known is None or modified_at is None:
            return False
        return modified_at > known

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @property
    def state_path(self) -> Path | None:
        if self._state_dir is None:
            return None
        return self._state_dir / STATE_FILENAME

    def load(self) -> None:
        """Load persisted state; a missing file leaves the state empty."""
        path = self.state_path
        if path is None or not path.exists():
            return
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StoreFailure("load", str(path), str(exc)) from exc
        if not isinstance(data, dict) or data.get("version") != STATE_VERSION:
            logger.warning(
                "Ignoring state file %s with unsupported version %r",
                path,
                data.get("version") if isinstance(data, dict) else data,
            )
            return
        self.last_timeline = data.get("last_timeline", "")
        self.entry_markers = dict(data.get("entry_markers", {}))
        self.last_sync = data.get("last_sync")

    def save(self) -> None:
        """Persist the state atomically (no-op without a ``state_dir``)."""
        state_dir = self._state_dir
        if state_dir is None:
            return
        path = state_dir / STATE_FILENAME
        try:
            self._write_atomic(state_dir, path)
        except OSError as exc:
            raise StoreFailure("save", str(path), str(exc)) from exc

    def _write_atomic(self, state_dir: Path, path: Path) -> None:
        state_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(state_dir), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self.to_dict(), fh, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def to_dict(self) -> dict:
        return {
            "version": STATE_VERSION,
            "last_sync": self.last_sync,
            "last_timeline": self.last_timeline,
            "entry_markers": self.entry_markers,
        }

    # ------------------------------------------------------------------
    # Content hashing
    # ------------------------------------------------------------------

    @staticmethod
    def content_hash(content: str) -> str:
        """Compute a normalised SHA-256 hex digest of *content*.

        Normalisation: strip BOM, ``\\r\\n`` -> ``\\n``, right-strip each
        line, drop trailing empty lines.  Used for status output only;
        drift detection compares the raw text.
        """
        text = content.lstrip("\ufeff").replace("\r\n", "\n")
        lines = [line.rstrip() for line in text.split("\n")]
        while lines and lines[-1] == "":
            lines.pop()
        return hashlib.sha256("\n".join(lines).encode("utf-8")).hexdigest()
