"""Public model exports for drivecdn."""

from __future__ import annotations

from .file_info import FileInfo, normalize_thumbnail_link
from .results import FileCount, ListPage, ResumableSession, StorageQuota, format_bytes

__all__ = [
    "FileInfo",
    "ListPage",
    "FileCount",
    "ResumableSession",
    "StorageQuota",
    "format_bytes",
    "normalize_thumbnail_link",
]
