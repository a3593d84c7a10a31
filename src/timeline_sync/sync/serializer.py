"""Render validated entries as a timeline document.

Document layout (grouping enabled)::

    <timeline_header>

    group 2
    2024-01-01 / 2024-03-01: [[Launch]] #in-progress
    end group

    group Ungrouped
    2024-06-01: [[Retro]]
    end group

Without grouping the document is just the sorted event lines.  Output is
deterministic: the same entries and configuration always give the same
bytes.
"""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import datetime
from typing import Any, Iterable

from ..config_schema import TimelineSyncConfig
from .dates import normalize_date, parse_canonical
from .models import Entry

UNGROUPED = "Ungrouped"

_WHITESPACE_RE = re.compile(r"\s+")
_WIKILINK_RE = re.compile(r"^\[\[([^\]|]+?)(?:\|[^\]]*)?\]\]$")
_NUMERIC_PREFIX_RE = re.compile(r"^\d+(?:\.\d+)?")


# ------------------------------------------------------------------
# Field helpers
# ------------------------------------------------------------------


def status_tag(status: Any) -> str | None:
    """Render a status value as a tag token (``in progress`` -> ``in-progress``)."""
    if status is None:
        return None
    text = _WHITESPACE_RE.sub("-", str(status).strip())
    return text or None


def group_name(value: Any) -> str | None:
    """Extract a group name from a property value.

    Lists use their first item; ``[[Target|Alias]]`` links are reduced to
    ``Target``.
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    text = str(value).strip()
    match = _WIKILINK_RE.match(text)
    if match:
        text = match.group(1).strip()
    return text or None


def entry_dates(
    entry: Entry, config: TimelineSyncConfig
) -> tuple[str | None, str | None]:
    """Canonical ``(start, end)`` for an entry, falling back to raw text."""
    props = config.properties
    date_format = config.formatting.date_format
    raw_start = entry.metadata.get(props.date_property)
    raw_end = entry.metadata.get(props.end_date_property)

    start = normalize_date(raw_start, False, date_format)
    end = normalize_date(raw_end, True, date_format)
    if start is None and raw_start is not None:
        start = str(raw_start)
    if end is None and raw_end is not None:
        end = str(raw_end)
    return start, end


def _start_datetime(entry: Entry, config: TimelineSyncConfig) -> datetime | None:
    start, _ = entry_dates(entry, config)
    return parse_canonical(start, config.formatting.date_format)


# ------------------------------------------------------------------
# Line formatting
# ------------------------------------------------------------------


def format_entry_line(entry: Entry, config: TimelineSyncConfig) -> str:
    """Format one event line: ``start[ / end]: [[title]][ #status]``."""
    start, end = entry_dates(entry, config)

    if end is None or end == start:
        line = f"{start}: [[{entry.title}]]"
    else:
        line = f"{start} / {end}: [[{entry.title}]]"

    if config.formatting.show_status_tags:
        tag = status_tag(entry.metadata.get(config.properties.status_property))
        if tag:
            line += f" #{tag}"

    return line


# ------------------------------------------------------------------
# Sorting
# ------------------------------------------------------------------


def sort_entries(
    entries: Iterable[Entry], config: TimelineSyncConfig
) -> list[Entry]:
    """Sort entries by ``grouping.sort_entries_by``.

    ``date``: chronological; entries without a parseable start go last.
    Ties (and ``alpha``) are broken by title.
    """
    if config.grouping.sort_entries_by == "alpha":
        return sorted(entries, key=lambda e: (e.title.casefold(), e.title))

    def _key(entry: Entry) -> tuple:
        start = _start_datetime(entry, config)
        return (
            start is None,
            start or datetime.min,
            entry.title.casefold(),
            entry.title,
        )

    return sorted(entries, key=_key)


def _numeric_prefix(name: str) -> float:
    match = _NUMERIC_PREFIX_RE.match(name)
    return float(match.group(0)) if match else 0.0


def sort_groups(
    groups: dict[str, list[Entry]], config: TimelineSyncConfig
) -> list[str]:
    """Order group names by ``grouping.sort_by``; ``Ungrouped`` is always last."""
    sort_by = config.grouping.sort_by

    def _key(name: str) -> tuple:
        if sort_by == "number":
            return (_numeric_prefix(name), name)
        if sort_by == "date":
            starts = [
                s
                for s in (_start_datetime(e, config) for e in groups[name])
                if s is not None
            ]
            earliest = min(starts) if starts else None
            return (earliest is None, earliest or datetime.min, name)
        return (name,)

    names = sorted((n for n in groups if n != UNGROUPED), key=_key)
    if UNGROUPED in groups:
        names.append(UNGROUPED)
    return names


def group_entries(
    entries: Iterable[Entry], config: TimelineSyncConfig
) -> dict[str, list[Entry]]:
    """Partition entries by their group property."""
    grouped: dict[str, list[Entry]] = defaultdict(list)
    prop = config.properties.group_property
    for entry in entries:
        name = group_name(entry.metadata.get(prop)) or UNGROUPED
        grouped[name].append(entry)
    return dict(grouped)


# ------------------------------------------------------------------
# Document
# ------------------------------------------------------------------


def serialize_timeline(
    entries: Iterable[Entry], config: TimelineSyncConfig
) -> str:
    """Render *entries* as timeline document text.

    Args:
        entries: Entries that already passed validation.
        config: Sync configuration.

    Returns:
        Document text without leading or trailing blank lines.
    """
    entries = list(entries)
    formatting = config.formatting
    blocks: list[str] = []

    if formatting.timeline_header and formatting.timeline_header.strip():
        blocks.append(formatting.timeline_header.strip())

    if config.grouping.enabled:
        grouped = group_entries(entries, config)
        for name in sort_groups(grouped, config):
            lines = [f"{formatting.group_start_text} {name}"]
            lines.extend(
                format_entry_line(e, config)
                for e in sort_entries(grouped[name], config)
            )
            lines.append(formatting.group_end_text)
            blocks.append("\n".join(lines))
    elif entries:
        blocks.append(
            "\n".join(
                format_entry_line(e, config)
                for e in sort_entries(entries, config)
            )
        )

    return "\n\n".join(blocks).strip("\n")
