"""Runtime configuration resolution.

Combines CLI arguments, environment variables, .env files and the YAML
config into one frozen ``UnifiedConfig``.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    TIMELINE_SYNC_TIMELINE_PATH: Timeline document path
    TIMELINE_SYNC_NOTES_PATH: Notes folder path
    TIMELINE_SYNC_STATE_DIR: Directory for the persisted drift baseline
    TIMELINE_SYNC_DRY_RUN: Compute cycles without writing (true/false)
"""

import logging
import os
from typing import Any

from .config_schema import UnifiedConfig, build_config

logger = logging.getLogger(__name__)


def get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def validate_config(config: UnifiedConfig) -> None:
    """Check cross-field constraints the schema cannot express.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the timeline path and notes path are unusable.
    """
    sync = config.sync

    if not sync.timeline_path.strip():
        raise ValueError(
            "Timeline path cannot be empty. Set TIMELINE_SYNC_TIMELINE_PATH "
            "or 'sync.timeline_path' in config.yml."
        )

    if not sync.notes_path.strip():
        raise ValueError(
            "Notes path cannot be empty. Set TIMELINE_SYNC_NOTES_PATH "
            "or 'sync.notes_path' in config.yml."
        )

    if sync.dry_run:
        logger.warning("Dry run enabled: no files will be modified.")


def load_config(
    timeline_path: str | None = None,
    notes_path: str | None = None,
    dry_run: bool = False,
    raw_config: dict[str, Any] | None = None,
) -> UnifiedConfig:
    """Load configuration with unified precedence.

    Resolution order for each overridable field (highest to lowest):
        CLI arg > env var / .env > raw_config (YAML) > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        timeline_path: Override timeline document path.
        notes_path: Override notes folder path.
        dry_run: Force dry-run mode (CLI flag).
        raw_config: Merged dict from ``load_hierarchical_config()``.

    Returns:
        Validated UnifiedConfig instance.

    Raises:
        ValueError: If the resulting configuration is invalid (this
            includes ``pydantic.ValidationError``).
    """
    unified = build_config(raw_config or {})
    sync = unified.sync
    updates: dict[str, Any] = {}

    final_timeline = timeline_path or os.getenv(
        "TIMELINE_SYNC_TIMELINE_PATH"
    )
    if final_timeline:
        updates["timeline_path"] = final_timeline.strip()

    final_notes = notes_path or os.getenv("TIMELINE_SYNC_NOTES_PATH")
    if final_notes:
        updates["notes_path"] = final_notes.strip()

    env_state_dir = os.getenv("TIMELINE_SYNC_STATE_DIR")
    if env_state_dir is not None:
        updates["state_dir"] = env_state_dir.strip() or None

    if dry_run:
        updates["dry_run"] = True
    else:
        env_dry_run = get_bool_env("TIMELINE_SYNC_DRY_RUN")
        if env_dry_run is not None:
            updates["dry_run"] = env_dry_run

    if updates:
        unified = unified.model_copy(
            update={"sync": sync.model_copy(update=updates)}
        )

    validate_config(unified)

    return unified
