"""
Token Cache & Rotation Controller.

``AccessTokenProvider.get_access_token()`` is the single entry point every
Drive call goes through. Service accounts are preferred; the cursor only
moves after an observed mint failure, so a healthy account keeps serving
its cached token for close to an hour. With no service accounts the OAuth
refresh-token identity is used instead.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Union

import requests

from drivecdn.errors import AuthExchangeError, ConfigurationError, DriveCdnError, NetworkError
from drivecdn.util.time import epoch_millis

from .credentials import CredentialSet, OAuthCredential
from .minter import MintedToken, TokenMinter
from .sources import (
    BundledFileSource,
    CredentialResolver,
    EnvironmentSource,
    LegacyVariableSource,
    RemoteUrlSource,
)
from .token_cache import TokenCache

if TYPE_CHECKING:
    from drivecdn.settings import DriveSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Local retry for a lone identity; only transport failures are retried."""

    max_retries: int = 0
    initial_delay_sec: float = 1.0


@dataclass(frozen=True)
class _Issued:
    token: str


@dataclass(frozen=True)
class _Exhausted:
    error: DriveCdnError
    attempts: int


_RotationOutcome = Union[_Issued, _Exhausted]


class AccessTokenProvider:
    """Serves valid bearer tokens, minting and rotating as needed."""

    def __init__(
        self,
        resolver: CredentialResolver,
        minter: TokenMinter,
        *,
        oauth: Optional[OAuthCredential] = None,
        cache: Optional[TokenCache] = None,
        clock: Callable[[], float] = epoch_millis,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._resolver = resolver
        self._minter = minter
        self._oauth = oauth
        self._cache = cache if cache is not None else TokenCache()
        self._clock = clock
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: "DriveSettings",
        *,
        session: Optional[requests.Session] = None,
    ) -> "AccessTokenProvider":
        """Wire the standard source chain and minter from settings."""
        session = session or requests.Session()
        resolver = CredentialResolver(
            [
                BundledFileSource(settings.service_accounts_file),
                RemoteUrlSource(
                    settings.service_accounts_url,
                    session=session,
                    timeout=settings.request_timeout_sec,
                ),
                EnvironmentSource(settings.environ),
                LegacyVariableSource(settings.environ),
            ]
        )
        minter = TokenMinter(session=session, timeout=settings.request_timeout_sec)
        return cls(
            resolver,
            minter,
            oauth=settings.oauth_credential,
            retry_policy=RetryPolicy(max_retries=settings.single_account_retries),
        )

    @property
    def cache(self) -> TokenCache:
        return self._cache

    def credentials(self) -> CredentialSet:
        """Return the resolved Credential Set, resolving it on first use."""
        return self._resolver.resolve()

    def get_access_token(self) -> str:
        """
        Return a bearer token that is valid for at least another minute.

        Raises:
            ConfigurationError: no service account and no complete OAuth credential.
            AuthExchangeError: every service account (or the OAuth identity) was rejected.
            NetworkError: the token endpoint was unreachable on the last attempt.
        """
        accounts = self._resolver.resolve()
        if accounts:
            outcome = self._rotate(accounts)
            if isinstance(outcome, _Issued):
                return outcome.token
            logger.error(
                "All %d service account attempt(s) failed: %s",
                outcome.attempts,
                outcome.error,
            )
            raise outcome.error

        return self._oauth_token()

    # ----------------------------
    # Internals
    # ----------------------------
    def _rotate(self, accounts: CredentialSet) -> _RotationOutcome:
        # At most one mint attempt per account per call, starting at the cursor.
        records = accounts.records
        start = accounts.cursor
        failures: list[DriveCdnError] = []
        lone = len(records) == 1

        for offset in range(len(records)):
            record = records[(start + offset) % len(records)]

            token = self._cache.get_valid(record.identity, self._clock())
            if token is not None:
                logger.debug("Using cached token for %s", record.client_email)
                return _Issued(token)

            try:
                token = self._mint_and_store(
                    record.identity,
                    lambda r=record: self._minter.mint_from_service_account(r),
                    retries=self._retry_policy.max_retries if lone else 0,
                )
                return _Issued(token)
            except (AuthExchangeError, NetworkError) as exc:
                failures.append(exc)
                logger.warning(
                    "Service account %s failed, rotating: %s",
                    record.client_email,
                    exc,
                )
                accounts.rotate()

        return _Exhausted(error=failures[-1], attempts=len(failures))

    def _oauth_token(self) -> str:
        oauth = self._oauth
        if oauth is None or not oauth.is_complete:
            raise ConfigurationError(
                "No authentication method available. "
                "Configure service accounts or OAuth credentials."
            )

        token = self._cache.get_valid(oauth.identity, self._clock())
        if token is not None:
            logger.debug("Using cached OAuth token")
            return token

        return self._mint_and_store(
            oauth.identity,
            lambda: self._minter.mint_from_refresh_token(
                oauth.client_id,
                oauth.client_secret,
                oauth.refresh_token,
            ),
            retries=self._retry_policy.max_retries,
        )

    def _mint_and_store(
        self,
        identity: str,
        mint: Callable[[], MintedToken],
        *,
        retries: int,
    ) -> str:
        delay = self._retry_policy.initial_delay_sec
        attempt = 0
        while True:
            try:
                minted = mint()
                break
            except NetworkError:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.warning(
                    "Token endpoint unreachable for %s, retry %d/%d in %.1fs",
                    identity,
                    attempt,
                    retries,
                    delay,
                )
                self._sleep(delay)
                delay *= 2

        # Absolute expiry, measured when the mint completed.
        expires_at_ms = self._clock() + minted.expires_in_seconds * 1000
        self._cache.store(identity, minted.access_token, expires_at_ms)
        return minted.access_token
