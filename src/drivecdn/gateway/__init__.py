"""Drive gateway exports for drivecdn."""

from __future__ import annotations

from .drive_gateway import DriveGateway
from .query import build_list_query, escape_query_value
from .streaming import StreamResponse

__all__ = ["DriveGateway", "StreamResponse", "build_list_query", "escape_query_value"]
