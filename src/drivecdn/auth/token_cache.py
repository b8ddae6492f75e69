"""Per-identity bearer token cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Tokens are never handed out within this many milliseconds of expiry.
SAFETY_MARGIN_MS = 60_000


@dataclass(slots=True, frozen=True)
class CachedToken:
    access_token: str
    expires_at_ms: float

    def is_valid(self, now_ms: float, margin_ms: float = SAFETY_MARGIN_MS) -> bool:
        return now_ms + margin_ms < self.expires_at_ms


class TokenCache:
    """
    Maps identity (``client_email`` or ``"oauth"``) to its last minted token.

    No locking: concurrent misses may mint twice for one identity and the
    last write wins.
    """

    def __init__(self, margin_ms: float = SAFETY_MARGIN_MS) -> None:
        self._margin_ms = margin_ms
        self._tokens: dict[str, CachedToken] = {}

    def get_valid(self, identity: str, now_ms: float) -> Optional[str]:
        cached = self._tokens.get(identity)
        if cached is not None and cached.is_valid(now_ms, self._margin_ms):
            return cached.access_token
        return None

    def store(self, identity: str, access_token: str, expires_at_ms: float) -> CachedToken:
        entry = CachedToken(access_token=access_token, expires_at_ms=expires_at_ms)
        self._tokens[identity] = entry
        return entry

    def peek(self, identity: str) -> Optional[CachedToken]:
        return self._tokens.get(identity)

    def clear(self) -> None:
        self._tokens.clear()

    def __contains__(self, identity: object) -> bool:
        return identity in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)
