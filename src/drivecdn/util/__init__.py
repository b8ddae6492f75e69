from .mime import (
    DEFAULT_UPLOAD_MIME,
    FOLDER_MIME,
    TYPE_FILTERS,
    classify_mime_type,
    is_folder,
)
from .time import epoch_millis, parse_rfc3339

__all__ = [
    "FOLDER_MIME",
    "DEFAULT_UPLOAD_MIME",
    "TYPE_FILTERS",
    "is_folder",
    "classify_mime_type",
    "epoch_millis",
    "parse_rfc3339",
]
