"""YAML frontmatter and inline property handling for note text.

A note looks like::

    ---
    date: 2024-03
    endDate: 2024-06
    status: in progress
    tags: [goal, focus]
    ---
    Body text, kept byte-for-byte on every patch.

Dataview-style inline properties (``key:: value``) can be read as a
supplement to the frontmatter but are never written.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

_FRONTMATTER_DELIMITER = "---"
_INLINE_LINE_RE = re.compile(
    r"^\s*(?P<key>[A-Za-z_][\w -]*?)\s*::\s*(?P<value>.*?)\s*$"
)
_INLINE_BRACKET_RE = re.compile(
    r"[\[(](?P<key>[A-Za-z_][\w -]*?)\s*::\s*(?P<value>[^\])]*?)\s*[\])]"
)


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split note text into ``(frontmatter_yaml, body)``.

    Returns ``(None, text)`` when the note has no frontmatter block.
    """
    content = text.lstrip("\ufeff")
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return None, text

    for index in range(1, len(lines)):
        if lines[index].strip() == _FRONTMATTER_DELIMITER:
            yaml_text = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            return yaml_text, body

    return None, text


def parse_frontmatter(text: str) -> dict[str, Any]:
    """Return the frontmatter mapping of a note (empty if absent).

    Raises:
        yaml.YAMLError: If the frontmatter is not valid YAML.
    """
    yaml_text, _ = split_frontmatter(text)
    if yaml_text is None:
        return {}
    data = yaml.safe_load(yaml_text)
    return data if isinstance(data, dict) else {}


def render_frontmatter(metadata: dict[str, Any], body: str) -> str:
    """Rebuild note text from a metadata mapping and an untouched body."""
    if not metadata:
        return body
    dumped = yaml.safe_dump(
        metadata,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{_FRONTMATTER_DELIMITER}\n{dumped}{_FRONTMATTER_DELIMITER}\n{body}"


def extract_inline_properties(text: str) -> dict[str, str]:
    """Collect ``key:: value`` properties from the note body.

    Both whole-line (``status:: done``) and bracketed
    (``[status:: done]``) forms are recognised.  The first occurrence of
    a key wins.
    """
    _, body = split_frontmatter(text)
    found: dict[str, str] = {}
    for line in body.splitlines():
        for match in _INLINE_BRACKET_RE.finditer(line):
            found.setdefault(match.group("key").strip(), match.group("value"))
        line_match = _INLINE_LINE_RE.match(line)
        if line_match and not _INLINE_BRACKET_RE.search(line):
            found.setdefault(
                line_match.group("key").strip(), line_match.group("value")
            )
    return found

