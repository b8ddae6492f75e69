"""Drive REST gateway: bearer-authenticated calls for the CDN handlers."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, BinaryIO, Optional, Protocol, Sequence, Union
from urllib.parse import quote

import requests

from drivecdn.auth import AccessTokenProvider
from drivecdn.errors import DriveRequestError, InvalidArgumentError, NetworkError, map_http_error
from drivecdn.models import FileCount, FileInfo, ListPage, ResumableSession, StorageQuota
from drivecdn.settings import DEFAULT_MAX_DIRECT_UPLOAD_BYTES, DEFAULT_REQUEST_TIMEOUT_SEC, DriveSettings
from drivecdn.util.mime import DEFAULT_UPLOAD_MIME, is_folder

from .fields import COUNT_FIELDS, LIST_FIELDS, METADATA_FIELDS, STORAGE_FIELDS
from .query import build_list_query, build_parents_clause
from .streaming import StreamResponse

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
UPLOAD_API_URL = "https://www.googleapis.com/upload/drive/v3"

DEFAULT_LIST_PAGE_SIZE = 24
MAX_LIST_PAGE_SIZE = 100
COUNT_PAGE_SIZE = 1000
FILE_COUNT_MAX_PAGES = 20

UploadBody = Union[bytes, BinaryIO]


class TokenSource(Protocol):
    def get_access_token(self) -> str:
        ...


class DriveGateway:
    """
    Thin facade over the Drive v3 REST API.

    Notes:
        - Every request carries `Authorization: Bearer <token>` from the token source.
        - Listing, counting and uploads are scoped to the configured parent folders.
        - Failed calls raise DriveRequestError subclasses and are not retried here.
    """

    def __init__(
        self,
        token_source: TokenSource,
        *,
        parents: Sequence[str] = (),
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        max_direct_upload_bytes: int = DEFAULT_MAX_DIRECT_UPLOAD_BYTES,
    ) -> None:
        self._token_source = token_source
        self._parents: tuple[str, ...] = tuple(parents)
        self._session = session or requests.Session()
        self._timeout = timeout
        self._max_direct_upload_bytes = max_direct_upload_bytes

    @classmethod
    def from_settings(
        cls,
        settings: DriveSettings,
        *,
        session: Optional[requests.Session] = None,
    ) -> "DriveGateway":
        """Build the gateway and its token provider from one settings object."""
        session = session or requests.Session()
        provider = AccessTokenProvider.from_settings(settings, session=session)
        return cls(
            provider,
            parents=settings.upload_roots,
            session=session,
            timeout=settings.request_timeout_sec,
            max_direct_upload_bytes=settings.max_direct_upload_bytes,
        )

    @property
    def parents(self) -> tuple[str, ...]:
        return self._parents

    # ----------------------------
    # Public API
    # ----------------------------
    def get_access_token(self) -> str:
        return self._token_source.get_access_token()

    def list_files(
        self,
        *,
        page_size: int = DEFAULT_LIST_PAGE_SIZE,
        page_token: Optional[str] = None,
        search: Optional[str] = None,
        file_type: Optional[str] = None,
    ) -> ListPage:
        """
        List files under the configured roots, most recently modified first.

        Args:
            page_size: Clamped to [1, 100].
            page_token: Token from a previous ListPage.
            search: Case-sensitive substring of the file name.
            file_type: images, video, audio, documents, code or data.
        """
        safe_size = min(max(page_size or DEFAULT_LIST_PAGE_SIZE, 1), MAX_LIST_PAGE_SIZE)
        params: dict[str, Any] = {
            "pageSize": str(safe_size),
            "orderBy": "modifiedTime desc",
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
            "spaces": "drive",
            "fields": LIST_FIELDS,
            "q": build_list_query(self._parents, search=search, file_type=file_type),
        }
        if page_token:
            params["pageToken"] = page_token

        data = self._fetch_json("GET", f"{DRIVE_API_URL}/files", params=params)
        files = [FileInfo.from_drive(f) for f in data.get("files", []) if isinstance(f, dict)]
        return ListPage(files=files, next_page_token=data.get("nextPageToken"))

    def get_metadata(self, file_id: str, fields: str = METADATA_FIELDS) -> dict[str, Any]:
        return self._fetch_json(
            "GET",
            _file_url(file_id),
            params={"supportsAllDrives": "true", "fields": fields},
        )

    def delete_file(self, file_id: str) -> None:
        self._fetch_json("DELETE", _file_url(file_id), params={"supportsAllDrives": "true"})

    def upload_multipart(
        self,
        file: UploadBody,
        metadata: Optional[dict[str, Any]] = None,
        *,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Upload a small file in one multipart request.

        Raises:
            InvalidArgumentError: when the payload exceeds the direct upload cap.

        A stream that cannot seek is buffered, reading at most one byte past
        the cap.
        """
        metadata = metadata or {}
        fallback_name = filename or _payload_name(file)
        if not _is_seekable(file):
            file = _read_at_most(file, self._max_direct_upload_bytes + 1)
        size = _payload_size(file)
        if size > self._max_direct_upload_bytes:
            raise InvalidArgumentError(
                f"file exceeds {self._max_direct_upload_bytes} bytes, use a resumable upload",
                details={"size": size, "limit": self._max_direct_upload_bytes},
            )

        name = metadata.get("name") or fallback_name
        meta = _drop_none(
            {
                "name": name,
                "description": metadata.get("description"),
                "parents": list(metadata.get("parents") or self._parents),
            }
        )
        files = {
            "metadata": (None, json.dumps(meta), "application/json"),
            "file": (name or "file", file, mime_type or DEFAULT_UPLOAD_MIME),
        }
        return self._fetch_json(
            "POST",
            f"{UPLOAD_API_URL}/files",
            params={"uploadType": "multipart", "supportsAllDrives": "true"},
            files=files,
        )

    def create_resumable_session(
        self,
        name: str,
        *,
        mime_type: Optional[str] = None,
        size: Optional[int] = None,
        parents: Optional[Sequence[str]] = None,
        description: Optional[str] = None,
    ) -> ResumableSession:
        """Open a resumable upload session; the client then PUTs bytes to `upload_url`."""
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("`name` is required")

        body = _drop_none(
            {
                "name": name,
                "description": description,
                "parents": list(parents) if parents else list(self._parents),
            }
        )
        headers = {
            "Content-Type": "application/json; charset=utf-8",
            "X-Upload-Content-Type": mime_type or DEFAULT_UPLOAD_MIME,
        }
        if size:
            headers["X-Upload-Content-Length"] = str(size)

        response = self._request(
            "POST",
            f"{UPLOAD_API_URL}/files",
            params={"uploadType": "resumable", "supportsAllDrives": "true"},
            headers=headers,
            data=json.dumps(body),
        )
        if not response.ok:
            raise map_http_error(response.status_code, response.text)

        payload: dict[str, Any] = {}
        if response.status_code != 204 and response.text:
            try:
                parsed = response.json()
            except ValueError as exc:
                logger.warning("Unexpected resumable session payload: %s", exc)
            else:
                if isinstance(parsed, dict):
                    payload = parsed

        return ResumableSession(
            upload_url=response.headers.get("Location"),
            file_id=payload.get("id"),
        )

    def stream_file(
        self,
        file_id: str,
        range_header: Optional[str] = None,
        method: str = "GET",
    ) -> StreamResponse:
        """
        Open the file's media for relaying, honoring an HTTP Range header.

        The returned StreamResponse owns the upstream connection; close it
        (or exhaust it) to release the connection.
        """
        head_only = method.upper() == "HEAD"
        headers = {}
        if range_header:
            headers["Range"] = range_header

        response = self._request(
            "HEAD" if head_only else "GET",
            _file_url(file_id),
            params={"alt": "media", "supportsAllDrives": "true"},
            headers=headers,
            accept_json=False,
            stream=True,
        )
        if not response.ok:
            try:
                body = response.text
            finally:
                response.close()
            raise map_http_error(response.status_code, body)

        return StreamResponse(response, head_only=head_only)

    def count_files(self, max_pages: int = FILE_COUNT_MAX_PAGES) -> FileCount:
        """Walk up to `max_pages` listing pages counting files and folders."""
        query_parts = ["trashed = false"]
        parents_clause = build_parents_clause(self._parents)
        if parents_clause:
            query_parts.append(parents_clause)

        params: dict[str, Any] = {
            "fields": COUNT_FIELDS,
            "pageSize": str(COUNT_PAGE_SIZE),
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
            "spaces": "drive",
            "q": " and ".join(query_parts),
        }

        total_files = 0
        folder_count = 0
        page = 0
        next_page_token: Optional[str] = None

        while True:
            if next_page_token:
                params["pageToken"] = next_page_token
            else:
                params.pop("pageToken", None)

            data = self._fetch_json("GET", f"{DRIVE_API_URL}/files", params=dict(params))
            files = data.get("files", []) or []
            total_files += len(files)
            folder_count += sum(1 for f in files if is_folder(f.get("mimeType", "")))

            next_page_token = data.get("nextPageToken")
            page += 1
            if not next_page_token or page >= max_pages:
                break

        return FileCount(
            total_files=total_files,
            folder_count=folder_count,
            complete=not next_page_token,
        )

    def get_drive_storage_info(self) -> StorageQuota:
        data = self._fetch_json(
            "GET",
            f"{DRIVE_API_URL}/about",
            params={
                "fields": STORAGE_FIELDS,
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            },
        )
        return StorageQuota.from_drive(data)

    # ----------------------------
    # Internals
    # ----------------------------
    def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        accept_json: bool = True,
        **kwargs: Any,
    ) -> requests.Response:
        merged = dict(headers or {})
        merged["Authorization"] = f"Bearer {self._token_source.get_access_token()}"
        if accept_json:
            merged.setdefault("Accept", "application/json")

        logger.debug("Drive %s %s", method, url)
        try:
            return self._session.request(method, url, headers=merged, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise NetworkError(
                "Drive request failed to complete",
                details={"method": method, "url": url},
                cause=exc,
            ) from exc

    def _fetch_json(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = self._request(method, url, **kwargs)
        if response.status_code == 204:
            return {}
        if not response.ok:
            raise map_http_error(response.status_code, response.text)
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise DriveRequestError(
                f"Drive returned a non-JSON body: {response.status_code}",
                status=response.status_code,
                body=response.text,
                cause=exc,
            ) from exc
        return data if isinstance(data, dict) else {}


def _file_url(file_id: str) -> str:
    if not isinstance(file_id, str) or not file_id:
        raise InvalidArgumentError("file_id must be a non-empty string")
    return f"{DRIVE_API_URL}/files/{quote(file_id, safe='')}"


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _is_seekable(file: UploadBody) -> bool:
    if isinstance(file, (bytes, bytearray)):
        return True
    seekable = getattr(file, "seekable", None)
    return bool(seekable()) if callable(seekable) else False


def _read_at_most(stream: BinaryIO, limit: int) -> bytes:
    """Buffer a forward-only stream, stopping once `limit` bytes are read."""
    buf = bytearray()
    while len(buf) < limit:
        chunk = stream.read(limit - len(buf))
        if not chunk:
            break
        buf.extend(chunk)
    return bytes(buf)


def _payload_size(file: UploadBody) -> int:
    if isinstance(file, (bytes, bytearray)):
        return len(file)
    position = file.tell()
    file.seek(0, os.SEEK_END)
    end = file.tell()
    file.seek(position)
    return end - position


def _payload_name(file: UploadBody) -> Optional[str]:
    name = getattr(file, "name", None)
    if isinstance(name, str) and name:
        return os.path.basename(name)
    return None
