"""Field masks for Google Drive API responses."""

from __future__ import annotations

METADATA_FIELDS: str = (
    "id,"
    "name,"
    "size,"
    "mimeType,"
    "md5Checksum,"
    "webViewLink,"
    "createdTime,"
    "modifiedTime"
)

LIST_FILE_FIELDS: str = (
    "id,"
    "name,"
    "mimeType,"
    "size,"
    "description,"
    "modifiedTime,"
    "createdTime,"
    "thumbnailLink,"
    "iconLink,"
    "webViewLink,"
    "webContentLink,"
    "md5Checksum,"
    "hasThumbnail"
)

LIST_FIELDS: str = f"nextPageToken,files({LIST_FILE_FIELDS})"
COUNT_FIELDS: str = "nextPageToken,files(mimeType)"
STORAGE_FIELDS: str = "storageQuota(limit,usage,usageInDrive,usageInDriveTrash)"
