"""Timeline sync engine.

Public API for synchronising a folder of notes (Markdown with YAML
frontmatter) with a single plain-text timeline document.

Architecture
------------
Each cycle serializes the qualifying notes into timeline text, writes it
unless the document was edited since the last observed snapshot (drift),
then parses the document back and patches notes whose dates, status or
group were changed in the timeline.

Modules:

- ``engine``     -- ``TimelineReconciler``: runs one sync cycle.
- ``scheduler``  -- ``CycleScheduler`` plus interval and polling triggers.
- ``state``      -- ``SyncState``: drift baseline, optionally persisted.
- ``dates``      -- date normalization to the canonical format.
- ``validator``  -- which notes qualify for the timeline.
- ``serializer`` -- notes to timeline text.
- ``parser``     -- timeline text to ``TimelineEvent`` objects.
- ``models``     -- ``Direction``, ``Entry``, ``TimelineEvent``,
  ``CycleResult`` and friends.
- ``reporter``   -- human-readable and JSON report formatting.

Usage example
-------------
::

    from timeline_sync.config_schema import TimelineSyncConfig
    from timeline_sync.session import build_reconciler
    from timeline_sync.sync import Direction, format_cycle_report

    config = TimelineSyncConfig(timeline_path="timeline.mw", notes_path="notes")
    reconciler = build_reconciler(config)

    # Preview first
    preview = reconciler.run_cycle(Direction.BIDIRECTIONAL, dry_run=True)
    print(format_cycle_report(preview))

    result = reconciler.run_cycle(Direction.BIDIRECTIONAL)
    print(format_cycle_report(result))
"""

from .engine import TimelineReconciler
from .models import (
    CycleResult,
    CycleStage,
    Direction,
    Entry,
    TimelineDocument,
    TimelineEvent,
)
from .parser import ParseResult, parse_timeline
from .reporter import (
    format_cycle_report,
    notification_messages,
    report_to_json,
)
from .scheduler import CycleScheduler, IntervalTrigger, PollingChangeTrigger
from .serializer import serialize_timeline
from .state import SyncState

__all__ = [
    "CycleResult",
    "CycleScheduler",
    "CycleStage",
    "Direction",
    "Entry",
    "IntervalTrigger",
    "ParseResult",
    "PollingChangeTrigger",
    "SyncState",
    "TimelineDocument",
    "TimelineEvent",
    "TimelineReconciler",
    "format_cycle_report",
    "notification_messages",
    "parse_timeline",
    "report_to_json",
    "serialize_timeline",
]
