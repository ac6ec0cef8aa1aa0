"""Field projections and query constants for Drive API requests."""

from __future__ import annotations

FOLDER_MIME: str = "application/vnd.google-apps.folder"

# Soft-deleted items never enter a mapping.
LIST_QUERY: str = "trashed=false"

# Containers first, then by name, so repeated remaps come back in the same order.
LIST_ORDER_BY: str = "folder,name"

PERMISSION_FIELDS: str = (
    "id,"
    "type,"
    "role,"
    "emailAddress,"
    "displayName,"
    "domain,"
    "deleted,"
    "expirationTime,"
    "pendingOwner"
)

RECORD_FIELDS: str = (
    "id,"
    "name,"
    "mimeType,"
    "parents,"
    "shared,"
    "webViewLink,"
    "modifiedTime,"
    "size,"
    "quotaBytesUsed,"
    "owners(emailAddress)"
)


def list_fields(include_access_entries: bool) -> str:
    """Projection for files.list, optionally embedding permissions."""
    fields = RECORD_FIELDS
    if include_access_entries:
        fields = f"{fields},permissions({PERMISSION_FIELDS})"
    return f"nextPageToken,files({fields})"


PERMISSION_LIST_FIELDS: str = f"nextPageToken,permissions({PERMISSION_FIELDS})"

ABOUT_FIELDS: str = "user(emailAddress,displayName)"
