"""Result models returned by the Drive gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .file_info import FileInfo

_BYTE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")


@dataclass(slots=True)
class ListPage:
    """One page of a file listing."""

    files: list[FileInfo] = field(default_factory=list)
    next_page_token: Optional[str] = None


@dataclass(slots=True, frozen=True)
class FileCount:
    """Outcome of a bounded page walk over the configured roots."""

    total_files: int
    folder_count: int
    complete: bool


@dataclass(slots=True, frozen=True)
class ResumableSession:
    """A Drive resumable upload session."""

    upload_url: Optional[str]
    file_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class StorageQuota:
    """
    Drive storage quota (`about.storageQuota`).

    `limit` is None when the account has unlimited storage.
    """

    limit: Optional[int]
    usage: int = 0
    usage_in_drive: int = 0
    usage_in_drive_trash: int = 0

    @classmethod
    def from_drive(cls, data: Optional[dict[str, Any]]) -> "StorageQuota":
        quota = (data or {}).get("storageQuota") or {}
        limit = _to_int(quota.get("limit"))
        return cls(
            limit=limit or None,
            usage=_to_int(quota.get("usage")),
            usage_in_drive=_to_int(quota.get("usageInDrive")),
            usage_in_drive_trash=_to_int(quota.get("usageInDriveTrash")),
        )

    @property
    def used_bytes(self) -> int:
        return self.usage_in_drive or self.usage

    @property
    def percent_used(self) -> Optional[float]:
        if not self.limit:
            return None
        return min(100.0, self.used_bytes / self.limit * 100.0)


def format_bytes(value: Any) -> str:
    """Human-readable size: '0 B', '1.5 KB', '12 MB'."""
    try:
        size = float(value or 0)
    except (TypeError, ValueError):
        size = 0.0
    if not size:
        return "0 B"

    unit = 0
    while size >= 1024 and unit < len(_BYTE_UNITS) - 1:
        size /= 1024
        unit += 1
    formatted = f"{size:.0f}" if size >= 10 else f"{size:.1f}"
    return f"{formatted} {_BYTE_UNITS[unit]}"


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0
