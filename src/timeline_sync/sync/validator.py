"""
Entry validation: decides which notes take part in a sync cycle.

Each check returns a ``(is_valid, reason)`` tuple so the reconciler can
report why an entry was left out without aborting the batch.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from ..config_schema import TimelineSyncConfig
from .dates import normalize_date, parse_canonical

_TAG_SPLIT_RE = re.compile(r"[,\s]+")


def format_rejection(field_name: str, reason: str) -> str:
    """Consistent message for a validation failure."""
    return f"{field_name} {reason}"


def normalize_tags(value: Any) -> set[str]:
    """Normalise a tags property into a lower-cased set.

    Accepts a single string (comma and/or whitespace delimited) or a list
    of strings.  A leading ``#`` is dropped from each tag.
    """
    if value is None:
        return set()
    if isinstance(value, str):
        items: list[Any] = _TAG_SPLIT_RE.split(value)
    elif isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        items = [value]

    tags = set()
    for item in items:
        if item is None:
            continue
        tag = str(item).strip().lstrip("#").lower()
        if tag:
            tags.add(tag)
    return tags


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def check_dates(
    metadata: dict[str, Any], config: TimelineSyncConfig, strict: bool
) -> tuple[bool, str]:
    props = config.properties
    date_format = config.formatting.date_format

    for prop in (props.date_property, props.end_date_property):
        if _is_blank(metadata.get(prop)):
            return (
                False,
                format_rejection(f"Property '{prop}'", "is missing or empty"),
            )

    if strict:
        for prop, is_end in (
            (props.date_property, False),
            (props.end_date_property, True),
        ):
            normalized = normalize_date(
                metadata[prop], is_end_date=is_end, date_format=date_format
            )
            if parse_canonical(normalized, date_format) is None:
                return (
                    False,
                    format_rejection(
                        f"Property '{prop}'",
                        f"is not a valid date ({metadata[prop]!r}, expected {date_format})",
                    ),
                )

    return (True, "")


def check_status(
    metadata: dict[str, Any], config: TimelineSyncConfig
) -> tuple[bool, str]:
    excluded = config.filtering.exclude_status
    status = metadata.get(config.properties.status_property)
    if _is_blank(status) or not excluded:
        return (True, "")
    if str(status).strip().lower() in excluded:
        return (
            False,
            format_rejection("Status", f"'{status}' is excluded"),
        )
    return (True, "")


def check_tags(
    metadata: dict[str, Any], config: TimelineSyncConfig
) -> tuple[bool, str]:
    required = config.tags.required_tags
    if not required:
        return (True, "")

    entry_tags = normalize_tags(metadata.get(config.properties.tags_property))

    if config.tags.require_all_tags:
        missing = [tag for tag in required if tag not in entry_tags]
        if missing:
            return (
                False,
                format_rejection("Tags", f"missing required {', '.join(missing)}"),
            )
        return (True, "")

    if not any(tag in entry_tags for tag in required):
        return (
            False,
            format_rejection(
                "Tags", f"contain none of {', '.join(required)}"
            ),
        )
    return (True, "")


def check_date_filter(
    metadata: dict[str, Any],
    config: TimelineSyncConfig,
    today: date | None = None,
) -> tuple[bool, str]:
    filtering = config.filtering
    if not filtering.enable_date_filter or filtering.date_filter_type == "all":
        return (True, "")

    props = config.properties
    date_format = config.formatting.date_format
    today = today or date.today()

    start = parse_canonical(
        normalize_date(metadata.get(props.date_property), False, date_format),
        date_format,
    )
    end = parse_canonical(
        normalize_date(metadata.get(props.end_date_property), True, date_format),
        date_format,
    )

    if filtering.date_filter_type == "future":
        if start is None:
            return (False, format_rejection("Start date", "cannot be parsed"))
        if start.date() < today:
            return (False, format_rejection("Start date", "is in the past"))
        return (True, "")

    # current
    if start is None or end is None:
        return (False, format_rejection("Date range", "cannot be parsed"))
    if not (start.date() <= today <= end.date()):
        return (False, format_rejection("Date range", "does not include today"))
    return (True, "")


def validate_entry(
    metadata: dict[str, Any] | None,
    config: TimelineSyncConfig,
    strict: bool = False,
    today: date | None = None,
) -> tuple[bool, str]:
    """
    Decide whether an entry qualifies for the timeline.

    Args:
        metadata: The entry's properties (frontmatter, possibly merged
            with inline properties).
        config: Sync configuration.
        strict: Require both dates to normalise to the canonical format.
        today: Reference day for the date filter (defaults to today).

    Returns:
        Tuple of (is_valid, reason).
        Returns (True, "") if valid, (False, reason) if rejected.

    Checks, in order:
        - Start and end dates present (and canonical in strict mode)
        - Status not in the exclusion list
        - Required tags present (any or all)
        - Date filter (future / current)
    """
    if not metadata:
        return (False, "No properties")

    for check in (
        lambda: check_dates(metadata, config, strict),
        lambda: check_status(metadata, config),
        lambda: check_tags(metadata, config),
        lambda: check_date_filter(metadata, config, today),
    ):
        is_valid, reason = check()
        if not is_valid:
            return (is_valid, reason)

    return (True, "")
