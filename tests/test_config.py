"""Tests for timeline_sync.config - runtime config resolution and validation.

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models). This tests load_config()
precedence and validate_config().
"""

import logging

import pytest

from timeline_sync.config import get_bool_env, load_config, validate_config
from timeline_sync.config_schema import TimelineSyncConfig, UnifiedConfig

ENV_VARS = (
    "TIMELINE_SYNC_TIMELINE_PATH",
    "TIMELINE_SYNC_NOTES_PATH",
    "TIMELINE_SYNC_STATE_DIR",
    "TIMELINE_SYNC_DRY_RUN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)


# -------------------------------------------------------------------------
# validate_config()
# -------------------------------------------------------------------------


class TestValidateConfig:
    def test_defaults_valid(self):
        validate_config(UnifiedConfig())

    def test_blank_timeline_path(self):
        config = UnifiedConfig(sync=TimelineSyncConfig(timeline_path="  "))
        with pytest.raises(ValueError, match="Timeline path cannot be empty"):
            validate_config(config)

    def test_blank_notes_path(self):
        config = UnifiedConfig(sync=TimelineSyncConfig(notes_path=""))
        with pytest.raises(ValueError, match="Notes path cannot be empty"):
            validate_config(config)

    def test_dry_run_logs_warning(self, caplog):
        config = UnifiedConfig(sync=TimelineSyncConfig(dry_run=True))
        with caplog.at_level(logging.WARNING, logger="timeline_sync.config"):
            validate_config(config)
        assert "Dry run enabled" in caplog.text


# -------------------------------------------------------------------------
# get_bool_env()
# -------------------------------------------------------------------------


class TestGetBoolEnv:
    @pytest.mark.parametrize("value", ["true", "1", "YES", "on"])
    def test_truthy(self, monkeypatch, value):
        monkeypatch.setenv("TIMELINE_SYNC_DRY_RUN", value)
        assert get_bool_env("TIMELINE_SYNC_DRY_RUN") is True

    def test_falsy(self, monkeypatch):
        monkeypatch.setenv("TIMELINE_SYNC_DRY_RUN", "no")
        assert get_bool_env("TIMELINE_SYNC_DRY_RUN") is False

    def test_unset(self):
        assert get_bool_env("TIMELINE_SYNC_DRY_RUN") is None


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    """Precedence: CLI args > env vars > YAML > defaults."""

    def test_defaults(self):
        config = load_config()
        assert config.sync.timeline_path == "timeline.mw"
        assert config.sync.notes_path == "notes"
        assert config.sync.dry_run is False

    def test_yaml_values(self):
        raw = {"sync": {"timeline_path": "plan.mw", "grouping": {"enabled": True}}}
        config = load_config(raw_config=raw)
        assert config.sync.timeline_path == "plan.mw"
        assert config.sync.grouping.enabled is True

    def test_env_overrides_yaml(self, monkeypatch):
        monkeypatch.setenv("TIMELINE_SYNC_TIMELINE_PATH", "env.mw")
        monkeypatch.setenv("TIMELINE_SYNC_NOTES_PATH", " env-notes ")
        config = load_config(raw_config={"sync": {"timeline_path": "plan.mw"}})
        assert config.sync.timeline_path == "env.mw"
        assert config.sync.notes_path == "env-notes"

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("TIMELINE_SYNC_TIMELINE_PATH", "env.mw")
        config = load_config(timeline_path="cli.mw", notes_path="cli-notes")
        assert config.sync.timeline_path == "cli.mw"
        assert config.sync.notes_path == "cli-notes"

    def test_dry_run_flag(self, monkeypatch):
        monkeypatch.setenv("TIMELINE_SYNC_DRY_RUN", "false")
        assert load_config(dry_run=True).sync.dry_run is True

    def test_dry_run_env(self, monkeypatch):
        monkeypatch.setenv("TIMELINE_SYNC_DRY_RUN", "true")
        assert load_config().sync.dry_run is True

    def test_empty_state_dir_env_disables_persistence(self, monkeypatch):
        monkeypatch.setenv("TIMELINE_SYNC_STATE_DIR", "")
        assert load_config().sync.state_dir is None

    def test_unrelated_sections_preserved(self):
        raw = {
            "sync": {"formatting": {"show_status_tags": False}},
            "logging": {"level": "DEBUG"},
        }
        config = load_config(timeline_path="cli.mw", raw_config=raw)
        assert config.sync.formatting.show_status_tags is False
        assert config.logging.level == "DEBUG"

    def test_invalid_yaml_value_raises(self):
        with pytest.raises(ValueError):
            load_config(raw_config={"sync": {"grouping": {"sort_by": "size"}}})
