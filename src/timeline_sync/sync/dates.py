"""Date normalisation for entries and timeline events.

Dates arrive in several granularities -- ``2024``, ``2024-05``,
``2024-05-17``, ``2024-05-17T08:00:00Z`` -- and as YAML-native values
(``datetime.date``, ``int``).  Everything is rendered into the one
canonical format configured as ``formatting.date_format`` before it is
compared or stored.

End dates of partial periods follow the timeline convention:

* a year ends on its last day (``2024`` -> ``2024-12-31``);
* a month ends on the first day of the following month
  (``2024-02`` -> ``2024-03-01``), an exclusive boundary.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from functools import lru_cache

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"^\d{4}$")
_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_MOMENT_TOKEN_RE = re.compile(r"YYYY|MM|DD|HH|mm|ss")

_MOMENT_TO_STRFTIME = {
    "YYYY": "%Y",
    "MM": "%m",
    "DD": "%d",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}


@lru_cache(maxsize=32)
def to_strftime(date_format: str) -> str:
    """Translate a moment-style format (``YYYY-MM-DD``) to strftime syntax.

    Unknown characters are kept as literals; ``%`` is escaped.
    """
    escaped = date_format.replace("%", "%%")
    return _MOMENT_TOKEN_RE.sub(
        lambda m: _MOMENT_TO_STRFTIME[m.group(0)], escaped
    )


def _render(value: date, date_format: str) -> str:
    return value.strftime(to_strftime(date_format))


def coerce_date_value(value: object, date_format: str) -> str | None:
    """Turn a raw property value into a string ready for normalisation.

    YAML parses ``date: 2024-05-17`` into a ``date`` and ``date: 2024``
    into an ``int``; both are rendered back to text here.  Empty values
    yield ``None``.
    """
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return _render(value, date_format)
    if isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def parse_canonical(value: str | None, date_format: str) -> datetime | None:
    """Parse *value* strictly against the canonical format.

    Strict means the value must render back to exactly the same text, so
    ``2024-5-7`` is rejected for ``YYYY-MM-DD``.
    """
    if not value:
        return None
    fmt = to_strftime(date_format)
    try:
        parsed = datetime.strptime(value, fmt)
    except ValueError:
        return None
    if parsed.strftime(fmt) != value:
        return None
    return parsed


def is_canonical(value: str | None, date_format: str) -> bool:
    """Return ``True`` if *value* is a valid canonical-format date."""
    return parse_canonical(value, date_format) is not None


def is_iso_instant(value: str) -> bool:
    """Return ``True`` if *value* looks like a UTC ISO-8601 instant."""
    return "T" in value and value.endswith("Z")


def normalize_iso_instant(value: str, date_format: str) -> str | None:
    """Render a UTC ISO-8601 instant in the canonical format.

    Returns ``None`` if the instant cannot be parsed.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable ISO instant: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return _render(parsed.astimezone(timezone.utc), date_format)


def normalize_date(
    value: object,
    is_end_date: bool = False,
    date_format: str = "YYYY-MM-DD",
    warnings: list[str] | None = None,
) -> str | None:
    """Normalise a date of unknown granularity to the canonical format.

    Args:
        value: Raw date (string, ``date``, ``datetime`` or ``int``).
        is_end_date: Use the end boundary for partial dates.
        date_format: Canonical moment-style format.
        warnings: Optional list that receives a format warning when the
            value cannot be interpreted at all.

    Returns:
        The canonical string; ``None`` for empty input or an unparseable
        ISO instant; the untouched original text when nothing else
        matches.
    """
    text = coerce_date_value(value, date_format)
    if text is None:
        return None

    if _YEAR_RE.match(text):
        year = int(text)
        boundary = date(year, 12, 31) if is_end_date else date(year, 1, 1)
        return _render(boundary, date_format)

    match = _YEAR_MONTH_RE.match(text)
    if match:
        year, month = int(match.group(1)), int(match.group(2))
        if 1 <= month <= 12:
            first = date(year, month, 1)
            if is_end_date:
                first = first + relativedelta(months=1)
            return _render(first, date_format)

    if is_iso_instant(text):
        return normalize_iso_instant(text, date_format)

    if is_canonical(text, date_format):
        return text

    try:
        lenient = date_parser.parse(text)
    except (ValueError, OverflowError):
        message = f"Unrecognised date format: '{text}' (expected {date_format})"
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return text
    return _render(lenient, date_format)
