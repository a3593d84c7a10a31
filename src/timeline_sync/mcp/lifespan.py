"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import yaml
from dotenv import load_dotenv

from ..config import load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..core.async_utils import run_sync
from ..errors import TimelineSyncError
from ..session import build_reconciler

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config files if present
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Build the reconciler (loads the persisted drift baseline)

    On shutdown:
    - Log shutdown message

    Args:
        config_overrides: Optional dict with config values from CLI
            (timeline_path, notes_path, dry_run)

    Yields:
        Dict with 'reconciler' and 'config' keys

    Raises:
        RuntimeError: If configuration is invalid or the state file is unreadable.
    """
    logger.info("MCP server starting...")
    _stderr_print("Timeline Sync MCP Server starting...")

    overrides = config_overrides or {}
    try:
        # .env first so ${VAR} interpolation in YAML can use its values
        load_dotenv()

        sources = [f"config file: {p}" for p in discover_config_files()[:1]]
        config = load_config(
            timeline_path=overrides.get("timeline_path"),
            notes_path=overrides.get("notes_path"),
            dry_run=overrides.get("dry_run", False),
            raw_config=load_hierarchical_config(),
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        _stderr_print(f"  Timeline: {config.sync.timeline_path}")
        _stderr_print(f"  Notes: {config.sync.notes_path}")
    except (ValueError, yaml.YAMLError) as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(f"Configuration error: {e}") from e

    try:
        reconciler = await run_sync(build_reconciler, config.sync)
    except (TimelineSyncError, OSError, ValueError) as e:
        logger.error("Failed to load sync state: %s", e)
        _stderr_print(f"ERROR: Failed to load sync state: {e}")
        raise RuntimeError(f"Failed to load sync state: {e}") from e

    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield {"reconciler": reconciler, "config": config}

    logger.info("MCP server shutting down")
    _stderr_print("Timeline Sync MCP Server shutting down.")
