"""Public auth exports for drivecdn."""

from __future__ import annotations

from .credentials import (
    OAUTH_IDENTITY,
    CredentialKind,
    CredentialRecord,
    CredentialSet,
    OAuthCredential,
    ServiceAccountCredential,
)
from .minter import MintedToken, TokenMinter, build_assertion
from .provider import AccessTokenProvider, RetryPolicy
from .sources import (
    BundledDataSource,
    BundledFileSource,
    CredentialResolver,
    EnvironmentSource,
    Found,
    LegacyVariableSource,
    Malformed,
    NotConfigured,
    RemoteUrlSource,
)
from .token_cache import SAFETY_MARGIN_MS, CachedToken, TokenCache

__all__ = [
    "OAUTH_IDENTITY",
    "CredentialKind",
    "CredentialRecord",
    "CredentialSet",
    "OAuthCredential",
    "ServiceAccountCredential",
    "MintedToken",
    "TokenMinter",
    "build_assertion",
    "AccessTokenProvider",
    "RetryPolicy",
    "CredentialResolver",
    "BundledDataSource",
    "BundledFileSource",
    "RemoteUrlSource",
    "EnvironmentSource",
    "LegacyVariableSource",
    "Found",
    "NotConfigured",
    "Malformed",
    "SAFETY_MARGIN_MS",
    "CachedToken",
    "TokenCache",
]
