"""Credential records and the rotating Credential Set."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union


class CredentialKind(str, Enum):
    SERVICE_ACCOUNT = "service_account"
    OAUTH_REFRESH = "oauth_refresh"


# Cache key used for the OAuth refresh-token identity.
OAUTH_IDENTITY = "oauth"


@dataclass(slots=True, frozen=True)
class ServiceAccountCredential:
    """
    A service-account key.

    `client_email` is the identity key for token caching.
    """

    client_email: str
    private_key: str
    project_id: Optional[str] = None

    def __post_init__(self) -> None:
        for key in ("client_email", "private_key"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"service account '{key}' must be a non-empty string")

    @property
    def kind(self) -> CredentialKind:
        return CredentialKind.SERVICE_ACCOUNT

    @property
    def identity(self) -> str:
        return self.client_email

    @classmethod
    def from_info(cls, info: Mapping[str, Any]) -> "ServiceAccountCredential":
        """
        Build a record from a parsed service-account JSON key.

        Raises:
            ValueError: if the blob is not an object or lacks required fields.
        """
        if not isinstance(info, Mapping):
            raise ValueError("service account entry must be a JSON object")

        private_key = info.get("private_key")
        if isinstance(private_key, str):
            # Keys pasted into env files often carry literal "\n" sequences.
            private_key = private_key.replace("\\n", "\n")

        project_id = info.get("project_id")
        return cls(
            client_email=info.get("client_email"),  # type: ignore[arg-type]
            private_key=private_key,  # type: ignore[arg-type]
            project_id=project_id if isinstance(project_id, str) else None,
        )

    def __repr__(self) -> str:
        return f"ServiceAccountCredential(client_email={self.client_email!r})"


@dataclass(slots=True, frozen=True)
class OAuthCredential:
    """OAuth client + refresh token. Fields may be missing; see `is_complete`."""

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def kind(self) -> CredentialKind:
        return CredentialKind.OAUTH_REFRESH

    @property
    def identity(self) -> str:
        return OAUTH_IDENTITY

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def __repr__(self) -> str:
        return f"OAuthCredential(client_id={self.client_id!r})"


CredentialRecord = Union[ServiceAccountCredential, OAuthCredential]


class CredentialSet:
    """
    Ordered service-account records plus a rotation cursor.

    The records are fixed once built. The cursor is always kept in
    [0, len) so rotation never goes out of bounds.
    """

    def __init__(self, records: Sequence[ServiceAccountCredential] = ()) -> None:
        self._records: tuple[ServiceAccountCredential, ...] = tuple(records)
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    @property
    def records(self) -> tuple[ServiceAccountCredential, ...]:
        return self._records

    @property
    def cursor(self) -> int:
        return self._cursor

    def current(self) -> Optional[ServiceAccountCredential]:
        if not self._records:
            return None
        return self._records[self._cursor % len(self._records)]

    def rotate(self) -> None:
        """Advance the cursor to the next record (no-op on an empty set)."""
        if self._records:
            self._cursor = (self._cursor + 1) % len(self._records)

    def __repr__(self) -> str:
        return f"CredentialSet(size={len(self._records)}, cursor={self._cursor})"
