from __future__ import annotations

import time
from datetime import datetime, timezone


def epoch_millis() -> float:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


def parse_rfc3339(value: str) -> datetime:
    """
    Parse a Drive `modifiedTime`/`createdTime` value into a UTC datetime.

    Drive sends `2025-01-01T12:34:56.123Z`; explicit offsets are accepted
    too. Values without a zone are rejected.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("timestamp must be a non-empty string")

    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {value!r}")
    return parsed.astimezone(timezone.utc)
