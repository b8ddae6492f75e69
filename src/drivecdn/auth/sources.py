"""
Credential Source Resolver.

Service-account keys are looked up in priority order:

1. A bundled JSON file holding ``{"accounts": [...]}``.
2. A remote URL returning the same shape.
3. Environment values: ``GDRIVE_SERVICE_ACCOUNTS`` (blobs joined by ``|||``)
   and ``GDRIVE_SERVICE_ACCOUNT_0`` .. ``GDRIVE_SERVICE_ACCOUNT_99``.
4. The legacy single ``GDRIVE_SERVICE_ACCOUNT`` value.

Each source reports ``Found``, ``NotConfigured`` or ``Malformed``; the first
``Found`` with at least one record wins. Malformed input is logged and never
fatal, so resolution may legitimately end with an empty set.
"""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Sequence, Union

import requests

from .credentials import CredentialSet, ServiceAccountCredential

logger = logging.getLogger(__name__)

ACCOUNTS_DELIMITER = "|||"
MULTI_ACCOUNTS_KEY = "GDRIVE_SERVICE_ACCOUNTS"
NUMBERED_ACCOUNT_PREFIX = "GDRIVE_SERVICE_ACCOUNT_"
LEGACY_ACCOUNT_KEY = "GDRIVE_SERVICE_ACCOUNT"
# Google Cloud allows up to 100 service accounts per project.
MAX_NUMBERED_ACCOUNTS = 100


@dataclass(frozen=True)
class Found:
    records: tuple[ServiceAccountCredential, ...]


@dataclass(frozen=True)
class NotConfigured:
    pass


@dataclass(frozen=True)
class Malformed:
    reason: str


SourceResult = Union[Found, NotConfigured, Malformed]


class CredentialSource(Protocol):
    name: str

    def load(self) -> SourceResult:
        ...


def parse_accounts(entries: Sequence[Any], origin: str) -> tuple[ServiceAccountCredential, ...]:
    """Convert raw service-account dicts into records, skipping invalid ones."""
    records: list[ServiceAccountCredential] = []
    for index, entry in enumerate(entries):
        try:
            records.append(ServiceAccountCredential.from_info(entry))
        except ValueError as exc:
            logger.warning("Skipping service account %s[%d]: %s", origin, index, exc)
    return tuple(records)


def _accounts_from_collection(data: Any, origin: str) -> SourceResult:
    if not isinstance(data, dict) or not isinstance(data.get("accounts"), list):
        return Malformed(f"{origin}: expected an object with an 'accounts' list")
    return Found(parse_accounts(data["accounts"], origin))


class BundledFileSource:
    """Service accounts shipped with the deployment as a JSON file."""

    name = "bundled file"

    def __init__(self, path: Optional[Union[str, Path]]) -> None:
        self._path = Path(path) if path else None

    def load(self) -> SourceResult:
        if self._path is None or not self._path.is_file():
            return NotConfigured()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            return Malformed(f"{self._path}: {exc}")
        return _accounts_from_collection(data, str(self._path))


class BundledDataSource:
    """Service accounts passed in-process as an already parsed collection."""

    name = "bundled data"

    def __init__(self, data: Optional[Mapping[str, Any]]) -> None:
        self._data = data

    def load(self) -> SourceResult:
        if self._data is None:
            return NotConfigured()
        return _accounts_from_collection(dict(self._data), self.name)


class RemoteUrlSource:
    """Service accounts fetched from a URL returning ``{"accounts": [...]}``."""

    name = "URL"

    def __init__(
        self,
        url: Optional[str],
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._session = session
        self._timeout = timeout

    def load(self) -> SourceResult:
        if not self._url:
            return NotConfigured()
        http = self._session or requests
        try:
            response = http.get(self._url, timeout=self._timeout)
        except requests.RequestException as exc:
            return Malformed(f"failed to fetch service accounts URL: {exc}")
        if not response.ok:
            return Malformed(f"service accounts URL answered {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            return Malformed(f"service accounts URL returned invalid JSON: {exc}")
        return _accounts_from_collection(data, "URL")


class EnvironmentSource:
    """Delimiter-joined and individually numbered environment values."""

    name = "environment"

    def __init__(self, environ: Mapping[str, str]) -> None:
        self._environ = environ

    def load(self) -> SourceResult:
        raw_entries: list[tuple[str, str]] = []

        joined = self._environ.get(MULTI_ACCOUNTS_KEY)
        if joined:
            for part in joined.split(ACCOUNTS_DELIMITER):
                if part.strip():
                    raw_entries.append((MULTI_ACCOUNTS_KEY, part.strip()))

        for i in range(MAX_NUMBERED_ACCOUNTS):
            key = f"{NUMBERED_ACCOUNT_PREFIX}{i}"
            value = self._environ.get(key)
            if value:
                raw_entries.append((key, value))
            elif i > 0 and not raw_entries:
                # Neither _0 nor _1 present: the numbered scheme is not in use.
                break

        if not raw_entries:
            return NotConfigured()

        records: list[ServiceAccountCredential] = []
        for key, value in raw_entries:
            record = _parse_blob(value, key)
            if record is not None:
                records.append(record)
        return Found(tuple(records))


class LegacyVariableSource:
    """The single ``GDRIVE_SERVICE_ACCOUNT`` JSON value."""

    name = "legacy variable"

    def __init__(self, environ: Mapping[str, str]) -> None:
        self._environ = environ

    def load(self) -> SourceResult:
        value = self._environ.get(LEGACY_ACCOUNT_KEY)
        if not value:
            return NotConfigured()
        record = _parse_blob(value, LEGACY_ACCOUNT_KEY)
        if record is None:
            return Malformed(f"{LEGACY_ACCOUNT_KEY} is not a valid service account")
        return Found((record,))


def _parse_blob(value: str, origin: str) -> Optional[ServiceAccountCredential]:
    try:
        return ServiceAccountCredential.from_info(json.loads(value))
    except ValueError as exc:
        # json.JSONDecodeError is a ValueError subclass.
        logger.warning("Failed to parse %s: %s", origin, exc)
        return None


class CredentialResolver:
    """
    Builds the Credential Set once per instance.

    Concurrent first callers share one in-flight resolution: the first caller
    runs the sources, the others wait on the same future. The outcome,
    including an unexpected exception, is kept for the resolver's lifetime.
    """

    def __init__(self, sources: Sequence[CredentialSource]) -> None:
        self._sources = tuple(sources)
        self._lock = threading.Lock()
        self._future: Optional[Future[CredentialSet]] = None

    @property
    def resolved(self) -> bool:
        return self._future is not None and self._future.done()

    def resolve(self) -> CredentialSet:
        with self._lock:
            pending = self._future
            if pending is None:
                future: Future[CredentialSet] = Future()
                self._future = future

        if pending is not None:
            return pending.result()

        try:
            result = self._run_sources()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        future.set_result(result)
        return result

    def _run_sources(self) -> CredentialSet:
        for source in self._sources:
            outcome = source.load()
            if isinstance(outcome, Found) and outcome.records:
                logger.info(
                    "Loaded %d service accounts from %s",
                    len(outcome.records),
                    source.name,
                )
                return CredentialSet(outcome.records)
            if isinstance(outcome, Malformed):
                logger.warning("Ignoring %s credentials: %s", source.name, outcome.reason)

        logger.info("No service accounts configured; OAuth refresh token fallback applies")
        return CredentialSet()
