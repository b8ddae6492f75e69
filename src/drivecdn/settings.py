"""Runtime configuration for drivecdn."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from drivecdn.auth.credentials import OAuthCredential

DEFAULT_REQUEST_TIMEOUT_SEC = 30.0
DEFAULT_MAX_DIRECT_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass(frozen=True)
class DriveSettings:
    """
    Configuration consumed by the token provider and the Drive gateway.

    `environ` keeps the raw mapping: the environment credential sources scan
    it for GDRIVE_SERVICE_ACCOUNTS, GDRIVE_SERVICE_ACCOUNT_<n> and
    GDRIVE_SERVICE_ACCOUNT lazily, on first token request.
    """

    upload_roots: tuple[str, ...] = ()
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    service_accounts_file: Optional[str] = None
    service_accounts_url: Optional[str] = None
    environ: Mapping[str, str] = field(default_factory=dict)
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC
    max_direct_upload_bytes: int = DEFAULT_MAX_DIRECT_UPLOAD_BYTES
    single_account_retries: int = 0

    def __post_init__(self) -> None:
        if self.request_timeout_sec <= 0:
            raise ValueError("request_timeout_sec must be positive")
        if self.max_direct_upload_bytes <= 0:
            raise ValueError("max_direct_upload_bytes must be positive")
        if self.single_account_retries < 0:
            raise ValueError("single_account_retries must not be negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DriveSettings":
        env = dict(os.environ if environ is None else environ)
        return cls(
            upload_roots=parse_upload_roots(env.get("DRIVE_UPLOAD_ROOT", "")),
            client_id=env.get("GOOGLE_CLIENT_ID") or None,
            client_secret=env.get("GOOGLE_CLIENT_SECRET") or None,
            refresh_token=env.get("GOOGLE_REFRESH_TOKEN") or None,
            service_accounts_file=env.get("GDRIVE_SERVICE_ACCOUNTS_FILE") or None,
            service_accounts_url=env.get("SERVICE_ACCOUNTS_URL") or None,
            environ=env,
            request_timeout_sec=float(
                env.get("DRIVECDN_REQUEST_TIMEOUT") or DEFAULT_REQUEST_TIMEOUT_SEC
            ),
            max_direct_upload_bytes=int(
                env.get("DRIVECDN_MAX_DIRECT_UPLOAD_BYTES") or DEFAULT_MAX_DIRECT_UPLOAD_BYTES
            ),
            single_account_retries=int(env.get("DRIVECDN_SINGLE_ACCOUNT_RETRIES") or 0),
        )

    @property
    def oauth_credential(self) -> Optional[OAuthCredential]:
        if not (self.client_id or self.client_secret or self.refresh_token):
            return None
        return OAuthCredential(
            client_id=self.client_id,
            client_secret=self.client_secret,
            refresh_token=self.refresh_token,
        )


def parse_upload_roots(value: str) -> tuple[str, ...]:
    """Split a comma-separated folder id list, dropping blanks."""
    return tuple(part.strip() for part in (value or "").split(",") if part.strip())
