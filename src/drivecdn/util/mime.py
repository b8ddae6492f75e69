from __future__ import annotations

FOLDER_MIME: str = "application/vnd.google-apps.folder"
DEFAULT_UPLOAD_MIME: str = "application/octet-stream"

# Semantic file classes -> Drive query predicates on mimeType.
TYPE_FILTERS: dict[str, tuple[str, ...]] = {
    "images": ("mimeType contains 'image/'",),
    "video": ("mimeType contains 'video/'",),
    "audio": ("mimeType contains 'audio/'",),
    "documents": (
        "mimeType = 'application/pdf'",
        "mimeType contains 'text/'",
        "mimeType contains 'application/msword'",
        "mimeType contains 'application/vnd.openxmlformats-officedocument'",
        "mimeType contains 'application/vnd.google-apps.document'",
        "mimeType contains 'application/vnd.google-apps.presentation'",
        "mimeType contains 'application/vnd.google-apps.spreadsheet'",
    ),
    "code": (
        "mimeType = 'application/javascript'",
        "mimeType = 'application/x-javascript'",
        "mimeType = 'text/css'",
        "mimeType = 'text/html'",
        "mimeType contains 'text/x-'",
        "mimeType contains 'application/json'",
    ),
    "data": (
        "mimeType = 'text/csv'",
        "mimeType = 'application/csv'",
        "mimeType contains 'spreadsheet'",
        "mimeType contains 'application/vnd.ms-excel'",
        "mimeType contains 'application/vnd.google-apps.spreadsheet'",
        "mimeType = 'application/json'",
    ),
}


def is_folder(mime_type: str) -> bool:
    return mime_type == FOLDER_MIME


def classify_mime_type(mime_type: str | None) -> str:
    """
    Return the semantic class of a MIME type.

    One of: images, video, audio, data, code, documents, other.
    The check order matters: `application/json` is data, `text/html` is code,
    and any remaining `text/*` is a document.
    """
    m = mime_type or ""
    if m.startswith("image/"):
        return "images"
    if m.startswith("video/"):
        return "video"
    if m.startswith("audio/"):
        return "audio"
    if m == "application/json" or "csv" in m or "spreadsheet" in m or "excel" in m:
        return "data"
    if "javascript" in m or m in ("text/html", "text/css") or m.startswith("text/x-"):
        return "code"
    if (
        m == "application/pdf"
        or m.startswith("text/")
        or "document" in m
        or "presentation" in m
    ):
        return "documents"
    return "other"
