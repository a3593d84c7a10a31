"""Parse timeline document text into ``TimelineEvent`` objects.

The document grammar is line oriented.  Every line falls into exactly one
category, each with its own recognizer:

* blank line                       -- ignored
* group end   ``<group_end_text>`` -- closes the current group
* group start ``<group_start_text> <name>`` -- opens a group (no nesting)
* event       ``<date-range>: [[<name>]] (#<tag>)?`` (space after the
  colon optional)
* anything else                    -- free-form commentary, ignored

Date ranges are either ``start`` or ``start / end`` in the canonical
format (partial dates are expanded), or, with ISO support enabled,
``<instant>`` / ``<instant> - <instant>`` with UTC instants.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from ..config_schema import TimelineSyncConfig
from .dates import is_canonical, normalize_date, normalize_iso_instant
from .models import TimelineEvent
from .serializer import UNGROUPED

logger = logging.getLogger(__name__)

_EVENT_SEPARATOR_RE = re.compile(r":\s*(?=\[\[)")
# The tag is the whole non-space token the serializer emits for a status.
_EVENT_TAIL_RE = re.compile(
    r"^\[\[(?P<name>[^\]]+)\]\](?:\s+#(?P<tag>\S+))?"
)
_ISO_RANGE_RE = re.compile(r"^(?P<start>\S+?Z)\s*-\s*(?P<end>\S+Z)$")


@dataclass
class ParseResult:
    """Events recognised in a document plus per-line warnings."""

    events: list[TimelineEvent] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# ------------------------------------------------------------------
# Line recognizers
# ------------------------------------------------------------------


def match_group_end(line: str, config: TimelineSyncConfig) -> bool:
    return line.lower() == config.formatting.group_end_text.lower()


def match_group_start(line: str, config: TimelineSyncConfig) -> str | None:
    """Return the group name if *line* opens a group."""
    marker = config.formatting.group_start_text
    if len(line) <= len(marker) or not line[len(marker)].isspace():
        return None
    if line[: len(marker)].lower() != marker.lower():
        return None
    name = line[len(marker) :].strip()
    return name or None


def split_event_line(line: str) -> tuple[str, str, str | None] | None:
    """Split an event line into ``(date_range, note_name, tag)``."""
    separator = _EVENT_SEPARATOR_RE.search(line)
    if separator is None or separator.start() == 0:
        return None
    date_range = line[: separator.start()].strip()
    match = _EVENT_TAIL_RE.match(line[separator.end() :])
    if not date_range or match is None:
        return None
    return date_range, match.group("name").strip(), match.group("tag")


# ------------------------------------------------------------------
# Date ranges
# ------------------------------------------------------------------


def _parse_iso_range(
    date_range: str, date_format: str
) -> tuple[str | None, str | None]:
    match = _ISO_RANGE_RE.match(date_range)
    if match:
        raw_start, raw_end = match.group("start"), match.group("end")
    else:
        raw_start = raw_end = date_range
    return (
        normalize_iso_instant(raw_start, date_format),
        normalize_iso_instant(raw_end, date_format),
    )


def parse_date_range(
    date_range: str, config: TimelineSyncConfig
) -> tuple[str, str] | None:
    """Normalise a date range; ``None`` means the line must be discarded."""
    formatting = config.formatting
    date_format = formatting.date_format

    if (
        formatting.support_iso_date_format
        and "T" in date_range
        and "Z" in date_range
    ):
        start, end = _parse_iso_range(date_range, date_format)
        if start is None or end is None:
            return None
        return start, end

    parts = [p.strip() for p in date_range.split("/")]
    if len(parts) > 2 or not all(parts):
        return None
    raw_start = parts[0]
    raw_end = parts[1] if len(parts) == 2 else raw_start

    start = normalize_date(raw_start, False, date_format)
    end = normalize_date(raw_end, True, date_format)
    if not (is_canonical(start, date_format) and is_canonical(end, date_format)):
        return None
    return start, end  # type: ignore[return-value]


# ------------------------------------------------------------------
# Document
# ------------------------------------------------------------------


def parse_timeline(text: str, config: TimelineSyncConfig) -> ParseResult:
    """Parse timeline document text.

    Args:
        text: Full document text.
        config: Sync configuration (marker texts, date format, ISO flag).

    Returns:
        ``ParseResult`` with events in document order and a warning for
        every event line that had to be discarded.
    """
    result = ParseResult()
    current_group: str | None = None

    for number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if match_group_end(line, config):
            current_group = None
            continue

        name = match_group_start(line, config)
        if name is not None:
            current_group = None if name == UNGROUPED else name
            continue

        parts = split_event_line(line)
        if parts is None:
            continue
        date_range, note_name, tag = parts

        dates = parse_date_range(date_range, config)
        if dates is None:
            message = f"Line {number}: invalid date range '{date_range}' for [[{note_name}]], line ignored"
            logger.warning(message)
            result.warnings.append(message)
            continue

        result.events.append(
            TimelineEvent(
                start_date=dates[0],
                end_date=dates[1],
                note_name=note_name,
                group=current_group,
                status=tag,
                line_number=number,
            )
        )

    logger.debug("Parsed %d events from timeline", len(result.events))
    return result
