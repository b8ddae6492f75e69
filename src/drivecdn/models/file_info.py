"""Data model for Drive items served by the CDN."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from drivecdn.util.mime import classify_mime_type
from drivecdn.util.time import parse_rfc3339

_THUMB_SIZE_RE = re.compile(r"=s\d+")
_THUMB_BOX_RE = re.compile(r"=w\d+-h\d+")


@dataclass(slots=True)
class FileInfo:
    """
    Represents a Drive file as listed through the gateway.

    Notes:
        - `kind` is the semantic class from classify_mime_type().
        - `web_view_link` falls back to the canonical Drive viewer URL.
    """

    file_id: str
    name: str
    mime_type: str
    kind: str

    size: int = 0
    description: str = ""
    modified_time: Optional[datetime] = None
    created_time: Optional[datetime] = None
    thumbnail_link: Optional[str] = None
    icon_link: Optional[str] = None
    web_view_link: Optional[str] = None
    md5_checksum: Optional[str] = None

    @classmethod
    def from_drive(cls, data: dict[str, Any]) -> "FileInfo":
        file_id = data.get("id")
        file_id = file_id if isinstance(file_id, str) else ""
        mime_type = data.get("mimeType")
        mime_type = mime_type if isinstance(mime_type, str) else ""
        name = data.get("name")
        description = data.get("description")

        web_view_link = data.get("webViewLink")
        if not isinstance(web_view_link, str) or not web_view_link:
            web_view_link = f"https://drive.google.com/file/d/{file_id}/view"

        md5 = data.get("md5Checksum")
        icon = data.get("iconLink")

        return cls(
            file_id=file_id,
            name=name if isinstance(name, str) else "",
            mime_type=mime_type,
            kind=classify_mime_type(mime_type),
            size=_parse_size(data.get("size")),
            description=description if isinstance(description, str) else "",
            modified_time=_parse_time(data.get("modifiedTime")),
            created_time=_parse_time(data.get("createdTime")),
            thumbnail_link=normalize_thumbnail_link(data.get("thumbnailLink")),
            icon_link=icon if isinstance(icon, str) else None,
            web_view_link=web_view_link,
            md5_checksum=md5 if isinstance(md5, str) else None,
        )


def normalize_thumbnail_link(link: Optional[str]) -> Optional[str]:
    """Rewrite a Drive thumbnail URL to request a 512px rendition."""
    if not isinstance(link, str) or not link:
        return None
    if "=s" in link:
        return _THUMB_SIZE_RE.sub("=s512", link)
    if "=w" in link:
        return _THUMB_BOX_RE.sub("=w512-h512", link)
    separator = "&" if "?" in link else "?"
    return f"{link}{separator}sz=w512-h512"


def _parse_size(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def _parse_time(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return parse_rfc3339(value)
    except ValueError:
        return None
