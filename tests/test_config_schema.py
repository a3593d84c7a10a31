"""Tests for the unified config schema and the build_config() factory."""

import pytest
from pydantic import ValidationError

from timeline_sync.config_schema import (
    FilterConfig,
    FormattingConfig,
    LoggingConfig,
    TagConfig,
    TimelineSyncConfig,
    UnifiedConfig,
    build_config,
)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_zero_config(self):
        config = UnifiedConfig()
        sync = config.sync
        assert sync.timeline_path == "timeline.mw"
        assert sync.notes_path == "notes"
        assert sync.enable_bidirectional_sync is True
        assert sync.properties.date_property == "date"
        assert sync.properties.end_date_property == "endDate"
        assert sync.grouping.enabled is False
        assert sync.formatting.date_format == "YYYY-MM-DD"
        assert sync.formatting.group_start_text == "group"
        assert sync.formatting.group_end_text == "end group"
        assert sync.bidirectional.sync_dates is True
        assert config.logging.level == "INFO"

    def test_frozen(self):
        config = TimelineSyncConfig()
        with pytest.raises(ValidationError):
            config.timeline_path = "other.mw"


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


class TestFormatting:
    def test_date_format_requires_tokens(self):
        with pytest.raises(ValidationError, match="must contain DD"):
            FormattingConfig(date_format="YYYY-MM")

    def test_date_format_rejects_slash(self):
        with pytest.raises(ValidationError, match="cannot contain '/'"):
            FormattingConfig(date_format="DD/MM/YYYY")

    def test_markers_stripped_and_non_empty(self):
        assert FormattingConfig(group_start_text="  section ").group_start_text == "section"
        with pytest.raises(ValidationError):
            FormattingConfig(group_end_text="   ")

    def test_markers_must_differ(self):
        with pytest.raises(ValidationError, match="must differ"):
            FormattingConfig(group_start_text="Group", group_end_text="group")


class TestListOptions:
    def test_comma_string_split_and_lowered(self):
        config = FilterConfig(exclude_status="Done, Cancelled,")
        assert config.exclude_status == ("done", "cancelled")

    def test_folders_trimmed(self):
        config = FilterConfig(exclude_folders=["/Archive/", " templates "])
        assert config.exclude_folders == ("Archive", "templates")

    def test_required_tags_normalised(self):
        assert TagConfig(required_tags="#Goal, focus").required_tags == ("goal", "focus")

    def test_none_is_empty(self):
        assert TagConfig(required_tags=None).required_tags == ()


class TestSyncConfig:
    def test_literal_choices(self):
        with pytest.raises(ValidationError):
            TimelineSyncConfig(grouping={"sort_by": "size"})
        with pytest.raises(ValidationError):
            TimelineSyncConfig(filtering={"date_filter_type": "past"})

    def test_interval_bounds(self):
        with pytest.raises(ValidationError):
            TimelineSyncConfig(auto_sync_interval=0)
        with pytest.raises(ValidationError):
            TimelineSyncConfig(poll_interval=0)

    def test_nested_dicts(self):
        config = TimelineSyncConfig(
            properties={"status_property": "state"},
            notifications={"detail_level": "detailed"},
        )
        assert config.properties.status_property == "state"
        assert config.notifications.detail_level == "detailed"


# ---------------------------------------------------------------------------
# build_config()
# ---------------------------------------------------------------------------


class TestBuildConfig:
    def test_empty(self):
        assert build_config({}) == UnifiedConfig()

    def test_sections(self):
        config = build_config(
            {
                "sync": {"timeline_path": "plan.mw"},
                "logging": {"level": "DEBUG", "file": "/tmp/sync.log"},
            }
        )
        assert config.sync.timeline_path == "plan.mw"
        assert config.logging == LoggingConfig(level="DEBUG", file="/tmp/sync.log")

    def test_unknown_sections_ignored(self, caplog):
        config = build_config({"server": {"url": "x"}, "sync": {}})
        assert config == UnifiedConfig()
        assert "server" in caplog.text

    def test_invalid_value_raises(self):
        with pytest.raises(ValidationError):
            build_config({"sync": {"debounce_seconds": -1}})
