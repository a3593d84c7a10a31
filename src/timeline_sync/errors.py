"""Exception hierarchy for timeline sync.

Entry-level and line-level problems never raise; they are collected as
warnings on the ``CycleResult``.  Only failures that abort a whole cycle
are exceptions:

- ``StoreFailure`` -- a read, write or create against the note folder or
  the timeline document failed.
- ``CycleInProgressError`` -- ``run_cycle()`` was entered while another
  cycle was still running.
"""

from __future__ import annotations


class TimelineSyncError(Exception):
    """Base class for cycle-level failures."""


class StoreFailure(TimelineSyncError):
    """An operation against an external store failed.

    Attributes:
        operation: Store operation name (``read``, ``write``, ``create``,
            ``list``, ``patch``).
        target: Path or entry id the operation was applied to.
    """

    def __init__(self, operation: str, target: str, reason: str) -> None:
        self.operation = operation
        self.target = target
        self.reason = reason
        super().__init__(f"{operation} failed for {target}: {reason}")


class CycleInProgressError(TimelineSyncError):
    """A sync cycle is already running."""

    def __init__(self) -> None:
        super().__init__("A sync cycle is already in progress")
