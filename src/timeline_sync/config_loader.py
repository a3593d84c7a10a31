"""
YAML config file discovery and loading for timeline_sync.

Files are searched by convention, may pull in other files with
``!include``, and may reference environment variables as ``${VAR}`` or
``${VAR:-default}``.  The merged mapping feeds ``config.load_config()``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TIMELINE_SYNC_CONFIG"
PROJECT_CONFIG_DIR = ".timeline_sync"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")

_STARTER_CONFIG = """\
# timeline-sync configuration
#
# Paths can also be set via environment variables:
#   TIMELINE_SYNC_TIMELINE_PATH, TIMELINE_SYNC_NOTES_PATH,
#   TIMELINE_SYNC_STATE_DIR, TIMELINE_SYNC_DRY_RUN
#
# sync:
#   timeline_path: timeline.mw
#   notes_path: notes
#   enable_bidirectional_sync: true
#   auto_sync: false
#   auto_sync_interval: 60
#   debounce_seconds: 2
#   properties:
#     date_property: date
#     end_date_property: endDate
#     group_property: group
#     status_property: status
#     tags_property: tags
#   grouping:
#     enabled: true
#     sort_by: number        # date | alpha | number
#     sort_entries_by: date  # date | alpha
#   formatting:
#     date_format: YYYY-MM-DD
#     group_start_text: group
#     group_end_text: end group
#     show_status_tags: true
#   filtering:
#     exclude_status: done, cancelled
#     exclude_folders: [archive]
#   tags:
#     required_tags: [goal, focus]
#     require_all_tags: false
#   bidirectional:
#     sync_dates: true
#     sync_status: true
#     sync_group: true
#
# logging:
#   level: INFO
#   file: null
"""


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    The default applies when VAR is unset or empty; an unset VAR without a
    default becomes ``""``.  An unterminated ``${`` is left as is.
    """
    return _ENV_VAR_PATTERN.sub(
        lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), value
    )


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader with ``!include``; the global ``yaml.SafeLoader`` is untouched."""

    include_stack: list[Path] = []

    def include(self, node: yaml.ScalarNode) -> Any:
        # Relative includes resolve against the including file; absolute
        # paths pass through the join unchanged.
        target = (Path(self.name).parent / self.construct_scalar(node)).resolve()
        if target in self.include_stack:
            chain = " -> ".join(str(p) for p in [*self.include_stack, target])
            raise ValueError(f"Circular include detected: {chain}")
        if not target.exists():
            raise FileNotFoundError(
                f"Include file not found: {target} (referenced from {self.name})"
            )
        return _load_yaml_with_includes(target, [*self.include_stack, target])


ConfigLoader.add_constructor("!include", ConfigLoader.include)


def _load_yaml_with_includes(
    path: Path, include_stack: list[Path] | None = None
) -> Any:
    path = path.resolve()
    with open(path, encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader.include_stack = include_stack or [path]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    Order: ``$TIMELINE_SYNC_CONFIG``, ``./.timeline_sync/config.yml``,
    ``./.timeline_sync/config.yaml``, ``~/.config/timeline_sync/config.yml``.
    """
    candidates = [
        Path.cwd() / PROJECT_CONFIG_DIR / "config.yml",
        Path.cwd() / PROJECT_CONFIG_DIR / "config.yaml",
        Path.home() / ".config" / "timeline_sync" / "config.yml",
    ]
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        candidates.insert(0, Path(explicit).expanduser().resolve())
    return [p for p in candidates if p.exists()]


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a starter file if none exists.

    Args:
        target: Where to create the starter file; defaults to
            ``./.timeline_sync/config.yml``.
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or Path.cwd() / PROJECT_CONFIG_DIR / "config.yml"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


def load_hierarchical_config() -> dict[str, Any]:
    """Load and merge all discovered config files.

    Higher-precedence files replace whole top-level sections of lower ones
    (no deep merge).  Environment variables are interpolated after the
    merge.  With no config files the result is ``{}``.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Loading config: %s", path)
        data = _load_yaml_with_includes(path)
        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )
    return _interpolate_recursive(merged)
