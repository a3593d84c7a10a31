"""Stores the sync engine reads from and writes to."""

from .base import EntrySource, TimelineStore
from .notes import MarkdownEntrySource
from .timeline_file import FileTimelineStore

__all__ = [
    "EntrySource",
    "FileTimelineStore",
    "MarkdownEntrySource",
    "TimelineStore",
]
