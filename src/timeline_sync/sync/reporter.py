"""Sync cycle report formatting functions.

Provides human-readable and machine-readable output for sync cycles:

- ``format_cycle_report`` -- full post-cycle summary.
- ``format_status`` -- current state of the timeline and sync baseline.
- ``notification_messages`` -- short user-facing messages, filtered by
  the notification settings.
- ``report_to_json`` -- structured dict for CLI ``--json`` and MCP output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config_schema import NotificationConfig
    from .models import CycleResult

_DRIFT_MESSAGE = (
    "Timeline was edited since the last sync and was not overwritten; "
    "its changes were applied to the notes instead"
)

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_cycle_report(result: CycleResult) -> str:
    """Format a complete cycle report as human-readable text.

    Drift is reported first; sections are only included when non-empty.

    Args:
        result: The completed cycle result.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    if result.drift:
        lines.append(f"DRIFT: {_DRIFT_MESSAGE}")
        lines.append("")

    header = f"Timeline sync ({result.direction.value})"
    if result.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {result.started_at}")
    if result.completed_at:
        lines.append(f"Completed: {result.completed_at}")
    lines.append("")

    lines.append(
        f"Entries: {result.entries_included} of {result.entries_seen} included"
    )
    verb = "would be written" if result.dry_run else "written"
    lines.append(
        f"Timeline: {verb if result.wrote_timeline else 'unchanged'}"
    )
    lines.append(f"Events parsed: {result.events_parsed}")
    lines.append(f"Entries updated: {result.updated_entry_count}")
    lines.append("")

    if result.updated_entries:
        lines.append("Updated entries:")
        for title in result.updated_entries:
            lines.append(f"  {title}")
        lines.append("")

    if result.warnings:
        lines.append("Warnings:")
        for warning in result.warnings:
            lines.append(f"  {warning}")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_status(status: dict) -> str:
    """Format the dict returned by ``status_snapshot`` for the terminal."""
    lines = [
        f"Timeline: {status['timeline_path']}"
        + ("" if status["timeline_exists"] else " (missing)"),
        f"Notes: {status['notes_path']}",
        f"Last sync: {status['last_sync'] or 'never'}",
        f"Tracked entries: {status['tracked_entries']}",
    ]
    if status.get("timeline_hash"):
        lines.append(f"Timeline hash: {status['timeline_hash'][:12]}")
    if status.get("drift"):
        lines.append("Timeline changed since the last sync")
    return "\n".join(lines)


# ------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------


def notification_messages(
    result: CycleResult, config: NotificationConfig
) -> list[str]:
    """Short messages to surface to the user after a cycle.

    ``minimal`` only reports drift and entry updates, ``normal`` adds a
    one-line summary, ``detailed`` adds each updated entry and warning.
    """
    if not config.enabled:
        return []

    messages: list[str] = []
    if result.drift:
        messages.append(_DRIFT_MESSAGE)

    if config.detail_level == "minimal":
        if result.updated_entry_count:
            messages.append(f"Updated {result.updated_entry_count} notes")
        return messages

    messages.append(result.summary())

    if config.detail_level == "detailed":
        messages.extend(f"Updated {title}" for title in result.updated_entries)
        if config.show_errors:
            messages.extend(result.warnings)
    return messages


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(result: CycleResult) -> dict:
    """Convert a cycle result to a structured dict for JSON serialisation.

    Suitable for MCP ``structuredContent`` output.
    """
    return {
        "direction": result.direction.value,
        "dry_run": result.dry_run,
        "started_at": result.started_at,
        "completed_at": result.completed_at,
        "drift": result.drift,
        "wrote_timeline": result.wrote_timeline,
        "counts": {
            "entries_seen": result.entries_seen,
            "entries_included": result.entries_included,
            "events_parsed": result.events_parsed,
            "updated_entries": result.updated_entry_count,
            "warnings": len(result.warnings),
        },
        "updated_entries": list(result.updated_entries),
        "warnings": list(result.warnings),
    }
