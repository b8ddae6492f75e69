"""Public error exports for drivecdn."""

from __future__ import annotations

from .exceptions import (
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
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    map_http_error,
    parse_error_body,
)

__all__ = [
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
    "HttpErrorInfo",
    "map_http_error",
    "parse_error_body",
]
