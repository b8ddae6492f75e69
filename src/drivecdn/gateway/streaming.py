"""Range-aware byte streaming from Drive to a client."""

from __future__ import annotations

import logging
import threading
from typing import Iterator, Optional

import requests
from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)

DEFAULT_CACHE_CONTROL = "public, max-age=86400"
DEFAULT_CHUNK_SIZE = 64 * 1024


def proxy_headers(upstream: CaseInsensitiveDict) -> CaseInsensitiveDict:
    """Copy upstream headers and apply the CDN overrides."""
    headers = CaseInsensitiveDict(upstream)
    headers["Access-Control-Allow-Origin"] = "*"
    if "Cache-Control" not in headers:
        headers["Cache-Control"] = DEFAULT_CACHE_CONTROL
    headers["Content-Disposition"] = "inline"
    return headers


class StreamResponse:
    """
    A Drive media response passed through to the caller.

    Bytes are relayed as received (no content decoding). Calling close(),
    from any thread, stops iter_bytes() at the next chunk boundary and
    closes the upstream connection.
    """

    def __init__(self, response: requests.Response, *, head_only: bool = False) -> None:
        self._response = response
        self._head_only = head_only
        self._closed = threading.Event()
        self.status: int = response.status_code
        self.headers: CaseInsensitiveDict = proxy_headers(response.headers)

    @property
    def has_body(self) -> bool:
        return not self._head_only

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def iter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        if self._head_only:
            self.close()
            return
        try:
            for chunk in self._response.raw.stream(chunk_size, decode_content=False):
                if self._closed.is_set():
                    logger.debug("Stream cancelled by caller")
                    break
                if chunk:
                    yield chunk
        finally:
            self.close()

    def close(self) -> None:
        self._closed.set()
        self._response.close()

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_bytes()

    def __enter__(self) -> "StreamResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.close()
        return None
