"""drivecdn public API."""

from __future__ import annotations

from drivecdn.auth import (
    AccessTokenProvider,
    CredentialResolver,
    CredentialSet,
    OAuthCredential,
    RetryPolicy,
    ServiceAccountCredential,
    TokenCache,
    TokenMinter,
)
from drivecdn.errors import (
    AuthExchangeError,
    ConfigurationError,
    DriveAuthError,
    DriveCdnError,
    DriveConflictError,
    DriveNotFoundError,
    DrivePermissionError,
    DriveQuotaExceededError,
    DriveRateLimitError,
    DriveRequestError,
    InvalidArgumentError,
    NetworkError,
    map_http_error,
)
from drivecdn.gateway import DriveGateway, StreamResponse
from drivecdn.models import FileCount, FileInfo, ListPage, ResumableSession, StorageQuota
from drivecdn.settings import DriveSettings

__all__ = [
    # High-level
    "DriveGateway",
    "DriveSettings",
    "StreamResponse",
    # Auth
    "AccessTokenProvider",
    "CredentialResolver",
    "CredentialSet",
    "OAuthCredential",
    "ServiceAccountCredential",
    "RetryPolicy",
    "TokenCache",
    "TokenMinter",
    # Models
    "FileInfo",
    "ListPage",
    "FileCount",
    "ResumableSession",
    "StorageQuota",
    # Errors
    "DriveCdnError",
    "ConfigurationError",
    "AuthExchangeError",
    "NetworkError",
    "InvalidArgumentError",
    "DriveRequestError",
    "DriveAuthError",
    "DrivePermissionError",
    "DriveQuotaExceededError",
    "DriveNotFoundError",
    "DriveConflictError",
    "DriveRateLimitError",
    "map_http_error",
]
