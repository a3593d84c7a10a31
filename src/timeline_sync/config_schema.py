"""Unified configuration schema for timeline_sync.

Defines frozen Pydantic models for the timeline sync options and logging.
A ``UnifiedConfig`` is built once per process (or per config reload) and
passed explicitly into every component call; nothing mutates it.

Usage:
    from timeline_sync.config_loader import load_hierarchical_config
    from timeline_sync.config_schema import build_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    unified.sync.grouping.sort_by
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


def _split_list(value: object) -> object:
    """Accept ``"a, b"`` as well as ``["a", "b"]`` for list options."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(","))
    return value


def _clean(items: tuple[str, ...], lower: bool = False) -> tuple[str, ...]:
    cleaned = []
    for item in items:
        item = str(item).strip()
        if not item:
            continue
        cleaned.append(item.lower() if lower else item)
    return tuple(cleaned)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class PropertyConfig(BaseModel):
    """Frontmatter property names the engine reads and writes."""

    date_property: str = Field(
        default="date", description="Start date property"
    )
    end_date_property: str = Field(
        default="endDate", description="End date property"
    )
    group_property: str = Field(
        default="group", description="Grouping property"
    )
    status_property: str = Field(
        default="status", description="Status property (rendered as #tag)"
    )
    tags_property: str = Field(default="tags", description="Tags property")
    allow_inline_properties: bool = Field(
        default=False,
        description="Read `key:: value` inline properties as a read-only supplement",
    )

    model_config = {"frozen": True}


class GroupingConfig(BaseModel):
    """Timeline grouping and ordering."""

    enabled: bool = False
    sort_by: Literal["date", "alpha", "number"] = "date"
    sort_entries_by: Literal["date", "alpha"] = "date"

    model_config = {"frozen": True}


class FormattingConfig(BaseModel):
    """How the timeline document is rendered.

    Attributes:
        date_format: Canonical date format in moment-style tokens
            (``YYYY``, ``MM``, ``DD``, ``HH``, ``mm``, ``ss``).
        group_start_text: Marker opening a group (``group Name``).
        group_end_text: Marker closing a group.
        show_status_tags: Append ``#status`` to event lines.
        support_iso_date_format: Accept ISO-8601 instant ranges when parsing.
        timeline_header: Optional text emitted before the first event.
    """

    date_format: str = "YYYY-MM-DD"
    group_start_text: str = "group"
    group_end_text: str = "end group"
    show_status_tags: bool = True
    support_iso_date_format: bool = False
    timeline_header: str | None = None

    model_config = {"frozen": True}

    @field_validator("date_format")
    @classmethod
    def _check_date_format(cls, value: str) -> str:
        value = value.strip()
        for token in ("YYYY", "MM", "DD"):
            if token not in value:
                raise ValueError(
                    f"date_format '{value}' must contain {token}"
                )
        if "/" in value:
            raise ValueError(
                f"date_format '{value}' cannot contain '/', it separates start and end dates"
            )
        return value

    @field_validator("group_start_text", "group_end_text")
    @classmethod
    def _check_marker(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("group marker text cannot be empty")
        return value

    @model_validator(mode="after")
    def _check_markers_distinct(self) -> FormattingConfig:
        if self.group_start_text.lower() == self.group_end_text.lower():
            raise ValueError(
                "group_start_text and group_end_text must differ"
            )
        return self


class FilterConfig(BaseModel):
    """Entry exclusion rules."""

    exclude_status: tuple[str, ...] = ()
    enable_date_filter: bool = False
    date_filter_type: Literal["all", "future", "current"] = "all"
    exclude_folders: tuple[str, ...] = ()

    model_config = {"frozen": True}

    @field_validator("exclude_status", "exclude_folders", mode="before")
    @classmethod
    def _split(cls, value: object) -> object:
        return _split_list(value)

    @field_validator("exclude_status")
    @classmethod
    def _lower_status(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return _clean(value, lower=True)

    @field_validator("exclude_folders")
    @classmethod
    def _clean_folders(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(f.strip("/") for f in _clean(value))


class TagConfig(BaseModel):
    """Tag requirement rule.

    With no ``required_tags`` every entry passes the tag check.
    """

    required_tags: tuple[str, ...] = ()
    require_all_tags: bool = False

    model_config = {"frozen": True}

    @field_validator("required_tags", mode="before")
    @classmethod
    def _split(cls, value: object) -> object:
        return _split_list(value)

    @field_validator("required_tags")
    @classmethod
    def _normalise(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(t.lstrip("#") for t in _clean(value, lower=True))


class BidirectionalConfig(BaseModel):
    """Which fields flow back from the timeline into entries."""

    sync_dates: bool = True
    sync_status: bool = True
    sync_group: bool = True

    model_config = {"frozen": True}


class NotificationConfig(BaseModel):
    """User-facing cycle summaries printed by the CLI."""

    enabled: bool = True
    detail_level: Literal["minimal", "normal", "detailed"] = "normal"
    show_errors: bool = True

    model_config = {"frozen": True}


class TimelineSyncConfig(BaseModel):
    """Everything one sync cycle needs to know.

    Paths are resolved relative to the working directory of the process
    that runs the cycle.
    """

    timeline_path: str = Field(
        default="timeline.mw", description="Timeline document path"
    )
    notes_path: str = Field(
        default="notes", description="Folder holding the entry notes"
    )
    enable_bidirectional_sync: bool = True
    auto_sync: bool = False
    auto_sync_interval: int = Field(
        default=60, ge=1, description="Seconds between periodic cycles"
    )
    debounce_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Quiet period before a triggered cycle runs",
    )
    poll_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between change polls in watch mode",
    )
    dry_run: bool = False
    state_dir: str | None = Field(
        default=".timeline_sync",
        description="Directory for the persisted drift baseline (null keeps it in memory)",
    )

    properties: PropertyConfig = Field(default_factory=PropertyConfig)
    grouping: GroupingConfig = Field(default_factory=GroupingConfig)
    formatting: FormattingConfig = Field(default_factory=FormattingConfig)
    filtering: FilterConfig = Field(default_factory=FilterConfig)
    tags: TagConfig = Field(default_factory=TagConfig)
    bidirectional: BidirectionalConfig = Field(
        default_factory=BidirectionalConfig
    )
    notifications: NotificationConfig = Field(
        default_factory=NotificationConfig
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    sync: TimelineSyncConfig = Field(default_factory=TimelineSyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.

    Raises:
        pydantic.ValidationError: If a value fails validation.
    """
    if not raw_data:
        return UnifiedConfig()

    unknown = set(raw_data) - set(UnifiedConfig.model_fields)
    if unknown:
        logger.warning(
            "Ignoring unknown config sections: %s",
            ", ".join(sorted(unknown)),
        )
        raw_data = {
            k: v for k, v in raw_data.items() if k not in unknown
        }

    return UnifiedConfig(**raw_data)
