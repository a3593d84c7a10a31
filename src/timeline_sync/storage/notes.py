"""Markdown notes with YAML frontmatter as an entry source.

Each note becomes an ``Entry`` whose id is its path relative to the notes
root and whose title is the file stem.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from ..errors import StoreFailure
from ..file_handler import file_mtime, read_file_with_encoding, write_file
from ..frontmatter import parse_frontmatter, render_frontmatter, split_frontmatter
from ..sync.models import Entry

logger = logging.getLogger(__name__)


class MarkdownEntrySource:
    """Entry source backed by a folder of Markdown notes.

    Args:
        root: Base directory the entry ids are relative to.
        exclude_folders: Folder names or relative folder paths to skip.
    """

    def __init__(
        self, root: Path, exclude_folders: tuple[str, ...] = ()
    ) -> None:
        self.root = root
        self.exclude_folders = tuple(f.strip("/") for f in exclude_folders if f)

    def _path(self, entry_id: str) -> Path:
        return self.root / entry_id

    def _is_excluded(self, rel_dir: PurePosixPath) -> bool:
        rel = rel_dir.as_posix()
        for folder in self.exclude_folders:
            if folder in rel_dir.parts:
                return True
            if rel == folder or rel.startswith(folder + "/"):
                return True
        return False

    def list_entries(self, scope: str = ".") -> list[Entry]:
        """Return one entry per ``.md`` file under *scope*, sorted by id.

        Notes with unreadable frontmatter are listed with empty metadata
        (validation rejects them) so one broken note never hides the rest.

        Raises:
            StoreFailure: If *scope* is not an existing directory.
        """
        folder = self.root / scope
        if not folder.is_dir():
            raise StoreFailure("list", str(folder), "notes folder not found")

        entries: list[Entry] = []
        for path in sorted(folder.rglob("*.md")):
            if not path.is_file():
                continue
            rel = PurePosixPath(path.relative_to(folder).as_posix())
            if self._is_excluded(rel.parent):
                continue

            entry_id = path.relative_to(self.root).as_posix()
            try:
                text, _ = read_file_with_encoding(path)
                metadata = parse_frontmatter(text)
            except yaml.YAMLError as exc:
                logger.warning("Invalid frontmatter in %s: %s", entry_id, exc)
                metadata = {}
            except OSError as exc:
                raise StoreFailure("read", entry_id, str(exc)) from exc

            entries.append(
                Entry(
                    id=entry_id,
                    title=path.stem,
                    metadata=metadata,
                    modified_at=file_mtime(path),
                )
            )

        logger.debug("Listed %d notes under %s", len(entries), folder)
        return entries

    def read_raw(self, entry_id: str) -> str:
        try:
            text, _ = read_file_with_encoding(self._path(entry_id))
        except OSError as exc:
            raise StoreFailure("read", entry_id, str(exc)) from exc
        return text

    def patch_properties(
        self, entry_id: str, patch: dict[str, Any]
    ) -> None:
        """Apply *patch* to the note's frontmatter, keeping everything else.

        Raises:
            StoreFailure: If the note cannot be read, parsed or written.
        """
        path = self._path(entry_id)
        try:
            text, encoding = read_file_with_encoding(path)
            yaml_text, body = split_frontmatter(text)
            metadata = yaml.safe_load(yaml_text) if yaml_text else {}
        except OSError as exc:
            raise StoreFailure("patch", entry_id, str(exc)) from exc
        except yaml.YAMLError as exc:
            raise StoreFailure(
                "patch", entry_id, f"invalid frontmatter: {exc}"
            ) from exc

        if not isinstance(metadata, dict):
            metadata = {}

        for key, value in patch.items():
            if value is None:
                metadata.pop(key, None)
            else:
                metadata[key] = value

        try:
            write_file(path, render_frontmatter(metadata, body), encoding)
        except OSError as exc:
            raise StoreFailure("patch", entry_id, str(exc)) from exc
        logger.info("Updated %s: %s", entry_id, ", ".join(sorted(patch)))
