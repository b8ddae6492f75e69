"""Exception hierarchy and HTTP error mapping for drivecdn."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional


class DriveCdnError(Exception):
    """
    Base exception for drivecdn.

    Attributes:
        details: Optional structured information (e.g., HTTP status, reason).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class ConfigurationError(DriveCdnError):
    """Raised when no usable authentication method is configured."""


class AuthExchangeError(DriveCdnError):
    """Raised when the OAuth token endpoint rejects a mint attempt."""

    def __init__(
        self,
        message: str,
        *,
        description: Optional[str] = None,
        status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        merged = {"status": status, "description": description}
        if details:
            merged.update(details)
        super().__init__(message, details=merged, cause=cause)
        self.description = description
        self.status = status


class NetworkError(DriveCdnError):
    """The request never got an HTTP answer (DNS, connect, TLS or timeout)."""


class InvalidArgumentError(DriveCdnError):
    """Raised when call arguments are rejected before reaching Drive."""


class DriveRequestError(DriveCdnError):
    """Raised when the Drive API answers with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        body: str = "",
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        merged: dict[str, Any] = {"status": status}
        if details:
            merged.update(details)
        super().__init__(message, details=merged, cause=cause)
        self.status = status
        self.body = body


class DriveAuthError(DriveRequestError):
    """Raised when Drive rejects the bearer token (HTTP 401)."""


class DrivePermissionError(DriveRequestError):
    """HTTP 403 for any reason other than quota."""


class DriveQuotaExceededError(DriveRequestError):
    """HTTP 403 whose reason names a quota or usage limit."""


class DriveNotFoundError(DriveRequestError):
    """The file id does not exist or is not visible to this identity (HTTP 404)."""


class DriveConflictError(DriveRequestError):
    """Raised when a conflict occurs (HTTP 409/412)."""


class DriveRateLimitError(DriveRequestError):
    """Drive throttled the caller (HTTP 429)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Fields pulled out of a Drive error payload."""

    status_code: int
    reason: str | None = None
    message: str | None = None


_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "dailyLimitExceeded",
    "usageLimits",
    "storageQuotaExceeded",
)


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in _QUOTA_REASON_KEYWORDS)


def parse_error_body(status_code: int, body: str) -> HttpErrorInfo:
    """Extract `error.message` and the first `errors[].reason` from a Drive error body."""
    reason = None
    message = None
    try:
        payload = json.loads(body) if body else None
    except ValueError:
        payload = None

    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        err = payload["error"]
        if isinstance(err.get("message"), str):
            message = err["message"]
        errors = err.get("errors") or []
        if errors and isinstance(errors, list) and isinstance(errors[0], dict):
            if isinstance(errors[0].get("reason"), str):
                reason = errors[0]["reason"]

    return HttpErrorInfo(status_code=status_code, reason=reason, message=message)


def map_http_error(
    status_code: int,
    body: str = "",
    *,
    cause: Optional[BaseException] = None,
) -> DriveRequestError:
    """
    Map a failed Drive response to a DriveRequestError.

    Policy:
        - 401 -> DriveAuthError
        - 403 -> DrivePermissionError, but DriveQuotaExceededError if quota-related
        - 404 -> DriveNotFoundError
        - 409/412 -> DriveConflictError
        - 429 -> DriveRateLimitError
        - otherwise -> DriveRequestError
    """
    info = parse_error_body(status_code, body)
    details: dict[str, Any] = {"reason": info.reason}
    message = f"Drive request failed: {status_code} {info.message or body}".strip()
    kwargs: dict[str, Any] = {
        "status": status_code,
        "body": body,
        "details": details,
        "cause": cause,
    }

    if status_code == 401:
        return DriveAuthError(message, **kwargs)
    if status_code == 403:
        if _is_quota_reason(info.reason):
            return DriveQuotaExceededError(message, **kwargs)
        return DrivePermissionError(message, **kwargs)
    if status_code == 404:
        return DriveNotFoundError(message, **kwargs)
    if status_code in (409, 412):
        return DriveConflictError(message, **kwargs)
    if status_code == 429:
        return DriveRateLimitError(message, **kwargs)

    return DriveRequestError(message, **kwargs)
