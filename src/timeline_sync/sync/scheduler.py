"""Debounced, single-flight scheduling of sync cycles.

Triggers (file changes, timers, explicit commands) never run a cycle
themselves.  They call ``CycleScheduler.request()``, which merges the
request into a single pending slot and restarts a quiet-period timer.
When the timer fires, the pending cycle runs in a worker thread; requests
arriving meanwhile are queued into the slot again and run afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

from ..core.async_utils import run_sync
from ..errors import TimelineSyncError
from ..file_handler import file_mtime
from .models import CycleResult, Direction

logger = logging.getLogger(__name__)


def merge_directions(
    pending: Direction | None, requested: Direction
) -> Direction:
    """Combine two requests; a bidirectional request dominates."""
    if Direction.BIDIRECTIONAL in (pending, requested):
        return Direction.BIDIRECTIONAL
    return requested


class CycleScheduler:
    """Coalesce sync requests into debounced, serialised cycles.

    Args:
        run_cycle: Blocking callable running one cycle for a direction.
        debounce_seconds: Quiet period after the last request.
        timeline_path: Path whose changes request bidirectional cycles.
        notes_path: Path whose changes request to-timeline cycles.
        on_result: Called with each successful cycle result.
    """

    def __init__(
        self,
        run_cycle: Callable[[Direction], CycleResult],
        debounce_seconds: float = 2.0,
        timeline_path: Path | None = None,
        notes_path: Path | None = None,
        on_result: Callable[[CycleResult], None] | None = None,
    ) -> None:
        self._run_cycle = run_cycle
        self._on_result = on_result
        self.debounce_seconds = debounce_seconds
        self.timeline_path = timeline_path
        self.notes_path = notes_path

        self.pending: Direction | None = None
        self.last_result: CycleResult | None = None
        self.last_error: Exception | None = None
        self.cycles_run = 0

        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request(self, direction: Direction) -> None:
        """Queue a cycle and (re)start the quiet period."""
        self.pending = merge_directions(self.pending, direction)
        self._idle.clear()

        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.debounce_seconds, self._on_quiet)
        logger.debug(
            "Sync requested (%s), pending=%s",
            direction.value,
            self.pending.value,
        )

    def notify_change(self, path: Path) -> None:
        """Map a changed path onto a cycle request."""
        if self.timeline_path is not None and path == self.timeline_path:
            self.request(Direction.BIDIRECTIONAL)
        elif self.notes_path is not None and (
            path == self.notes_path or self.notes_path in path.parents
        ):
            self.request(Direction.TO_TIMELINE)
        else:
            logger.debug("Ignoring change to %s", path)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _on_quiet(self) -> None:
        self._timer = None
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self.pending is not None and self._timer is None:
            direction, self.pending = self.pending, None
            try:
                self.last_result = await run_sync(self._run_cycle, direction)
                self.last_error = None
                if self._on_result is not None:
                    self._on_result(self.last_result)
            except TimelineSyncError as exc:
                logger.error("Sync cycle failed: %s", exc)
                self.last_error = exc
            except Exception as exc:
                logger.exception("Sync cycle crashed: %s", exc)
                self.last_error = exc
            self.cycles_run += 1

        if self.pending is None and self._timer is None:
            self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until no cycle is pending or running."""
        await self._idle.wait()

    async def stop(self) -> None:
        """Drop pending requests and wait for a running cycle to finish."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.pending = None
        if self._task is not None and not self._task.done():
            await self._task
        self._idle.set()


# ----------------------------------------------------------------------
# Trigger sources
# ----------------------------------------------------------------------


class IntervalTrigger:
    """Request a cycle every *interval* seconds."""

    def __init__(
        self,
        scheduler: CycleScheduler,
        interval: float,
        direction: Direction = Direction.BIDIRECTIONAL,
    ) -> None:
        self.scheduler = scheduler
        self.interval = interval
        self.direction = direction

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.scheduler.request(self.direction)


def snapshot_mtimes(timeline: Path, notes: Path) -> dict[Path, float]:
    """Modification times of the timeline file and every note."""
    snapshot: dict[Path, float] = {}
    mtime = file_mtime(timeline)
    if mtime is not None:
        snapshot[timeline] = mtime
    if notes.is_dir():
        for path in notes.rglob("*.md"):
            mtime = file_mtime(path)
            if mtime is not None:
                snapshot[path] = mtime
    return snapshot


class PollingChangeTrigger:
    """Detect changes by polling modification times.

    Changes caused by the cycles themselves are reported too; the
    reconciler's idempotence makes the follow-up cycle a no-op.
    """

    def __init__(
        self,
        scheduler: CycleScheduler,
        timeline: Path,
        notes: Path,
        poll_interval: float = 1.0,
    ) -> None:
        self.scheduler = scheduler
        self.timeline = timeline
        self.notes = notes
        self.poll_interval = poll_interval
        self._snapshot: dict[Path, float] = {}

    def poll(self) -> list[Path]:
        """Return paths that were added, changed or removed since last poll."""
        current = snapshot_mtimes(self.timeline, self.notes)
        changed = [
            path
            for path in current.keys() | self._snapshot.keys()
            if current.get(path) != self._snapshot.get(path)
        ]
        self._snapshot = current
        return sorted(changed)

    async def run(self) -> None:
        self._snapshot = await run_sync(
            snapshot_mtimes, self.timeline, self.notes
        )
        while True:
            await asyncio.sleep(self.poll_interval)
            for path in await run_sync(self.poll):
                self.scheduler.notify_change(path)
