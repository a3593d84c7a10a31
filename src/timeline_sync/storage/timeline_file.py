"""Timeline document stored as a plain file."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import StoreFailure
from ..file_handler import file_mtime, read_file_with_encoding, write_file
from ..sync.models import TimelineDocument

logger = logging.getLogger(__name__)


class FileTimelineStore:
    """Read and replace the timeline document on disk.

    Args:
        root: Base directory relative paths are resolved against.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, path: str) -> Path:
        return self.root / path

    def exists(self, path: str) -> bool:
        return self._path(path).is_file()

    def read_document(self, path: str) -> TimelineDocument:
        target = self._path(path)
        try:
            text, _ = read_file_with_encoding(target)
        except OSError as exc:
            raise StoreFailure("read", str(target), str(exc)) from exc
        return TimelineDocument(text=text, modified_at=file_mtime(target))

    def write_document(self, path: str, text: str) -> None:
        target = self._path(path)
        if not target.is_file():
            raise StoreFailure("write", str(target), "document does not exist")
        try:
            write_file(target, text)
        except OSError as exc:
            raise StoreFailure("write", str(target), str(exc)) from exc
        logger.debug("Wrote timeline %s (%d chars)", target, len(text))

    def create_document(self, path: str, text: str) -> None:
        target = self._path(path)
        try:
            write_file(target, text)
        except OSError as exc:
            raise StoreFailure("create", str(target), str(exc)) from exc
        logger.info("Created timeline %s", target)
