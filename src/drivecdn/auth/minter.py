"""
Token Minter: exchanges one credential for a short-lived bearer token.

Two grants are supported against Google's OAuth token endpoint:

- JWT bearer (``urn:ietf:params:oauth:grant-type:jwt-bearer``) with an
  RS256 assertion signed by a service-account private key.
- ``refresh_token`` with an OAuth client id/secret.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
from cryptography.exceptions import UnsupportedAlgorithm
from google.auth import crypt

from drivecdn.errors import AuthExchangeError, ConfigurationError, NetworkError
from drivecdn.util.time import epoch_millis

from .credentials import ServiceAccountCredential

logger = logging.getLogger(__name__)

DRIVE_SCOPE = "https://www.googleapis.com/auth/drive"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
REFRESH_TOKEN_GRANT = "refresh_token"

ASSERTION_LIFETIME_SEC = 3600
DEFAULT_TOKEN_LIFETIME_SEC = 3600


@dataclass(slots=True, frozen=True)
class MintedToken:
    access_token: str
    expires_in_seconds: int


def base64url_encode(data: bytes) -> str:
    """base64url without padding (RFC 7515 section 2)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _json_segment(obj: dict[str, Any]) -> str:
    return base64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def build_assertion(
    record: ServiceAccountCredential,
    *,
    issued_at: int,
    scope: str = DRIVE_SCOPE,
    audience: str = TOKEN_ENDPOINT,
) -> str:
    """
    Build the signed JWT assertion for a service account.

    Returns ``header.payload.signature`` with every segment base64url encoded.

    Raises:
        AuthExchangeError: if the private key cannot be loaded or cannot sign RS256.
    """
    header = {"alg": "RS256", "typ": "JWT"}
    payload = {
        "iss": record.client_email,
        "scope": scope,
        "aud": audience,
        "iat": issued_at,
        "exp": issued_at + ASSERTION_LIFETIME_SEC,
    }
    signing_input = f"{_json_segment(header)}.{_json_segment(payload)}"

    try:
        signer = crypt.RSASigner.from_string(record.private_key)
        signature = signer.sign(signing_input.encode("utf-8"))
    except (ValueError, TypeError, IndexError, UnsupportedAlgorithm) as exc:
        raise AuthExchangeError(
            "Invalid service account private key",
            description=str(exc),
            details={"client_email": record.client_email},
            cause=exc,
        ) from exc

    return f"{signing_input}.{base64url_encode(signature)}"


class TokenMinter:
    """Performs the token-endpoint exchanges. Holds no token state."""

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        token_endpoint: str = TOKEN_ENDPOINT,
        scope: str = DRIVE_SCOPE,
        timeout: float = 30.0,
        clock: Callable[[], float] = epoch_millis,
    ) -> None:
        self._session = session or requests.Session()
        self._token_endpoint = token_endpoint
        self._scope = scope
        self._timeout = timeout
        self._clock = clock

    def mint_from_service_account(self, record: ServiceAccountCredential) -> MintedToken:
        """
        Exchange a signed assertion for an access token.

        Raises:
            AuthExchangeError: the endpoint rejected the assertion or the key is invalid.
            NetworkError: the endpoint could not be reached.
        """
        issued_at = int(self._clock() // 1000)
        assertion = build_assertion(
            record,
            issued_at=issued_at,
            scope=self._scope,
            audience=self._token_endpoint,
        )
        logger.debug("Minting token for service account %s", record.client_email)
        return self._exchange(
            {"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
            default_error="Failed to exchange service account JWT",
            identity=record.client_email,
        )

    def mint_from_refresh_token(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
    ) -> MintedToken:
        """
        Exchange an OAuth refresh token for an access token.

        Raises:
            ConfigurationError: if any of the three inputs is missing (no network call).
            AuthExchangeError: the endpoint rejected the refresh token.
            NetworkError: the endpoint could not be reached.
        """
        if not client_id or not client_secret or not refresh_token:
            raise ConfigurationError("Missing OAuth client credentials for refresh flow")

        logger.debug("Minting token from OAuth refresh token")
        return self._exchange(
            {
                "client_id": client_id,
                "client_secret": client_secret,
                "refresh_token": refresh_token,
                "grant_type": REFRESH_TOKEN_GRANT,
            },
            default_error="Failed to refresh token",
            identity="oauth",
        )

    def _exchange(self, form: dict[str, str], *, default_error: str, identity: str) -> MintedToken:
        try:
            response = self._session.post(
                self._token_endpoint,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(
                "Token endpoint unreachable",
                details={"identity": identity},
                cause=exc,
            ) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if not response.ok:
            description = payload.get("error_description") or payload.get("error") or default_error
            raise AuthExchangeError(
                str(description),
                description=str(description),
                status=response.status_code,
                details={"identity": identity},
            )

        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthExchangeError(
                "Token endpoint response has no access_token",
                status=response.status_code,
                details={"identity": identity},
            )

        expires_in = payload.get("expires_in")
        try:
            lifetime = int(expires_in) if expires_in else DEFAULT_TOKEN_LIFETIME_SEC
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME_SEC

        return MintedToken(access_token=access_token, expires_in_seconds=lifetime)
