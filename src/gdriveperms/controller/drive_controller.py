"""Google Drive API controller (internal use only)."""

from __future__ import annotations

import json
import logging
import socket
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

from gdriveperms.auth import DRIVE_SCOPES, AuthInfo, OAuthClient
from gdriveperms.config import MappingConfig
from gdriveperms.errors import (
    ApiError,
    AuthError,
    HttpErrorInfo,
    NetworkError,
    is_transient,
    map_http_error,
)
from gdriveperms.models import AccessEntry, AccessLevel, FileRecord, ListPage, SubjectKind
from gdriveperms.util.timefmt import parse_rfc3339_or_none

from .fields import (
    ABOUT_FIELDS,
    FOLDER_MIME,
    LIST_ORDER_BY,
    LIST_QUERY,
    PERMISSION_FIELDS,
    PERMISSION_LIST_FIELDS,
    list_fields,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class GoogleDriveController:
    """
    Drive API controller (internal only).

    Notes:
        - The Drive `service` object is NOT exposed.
        - fetch_page() performs exactly one request and never retries; the
          mapping orchestrator owns the retry policy for listing.
        - Permission endpoints retry transient failures here.
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        scopes: Optional[Sequence[str]] = None,
        config: Optional[MappingConfig] = None,
        supports_all_drives: bool = True,
        interactive: bool = True,
    ) -> None:
        cfg = config or MappingConfig()
        client = OAuthClient(auth_info)
        service = client.build_drive_service(
            list(scopes) if scopes is not None else DRIVE_SCOPES,
            timeout_sec=cfg.page_timeout_sec,
            interactive=interactive,
        )
        self._init(service, cfg, supports_all_drives)

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        config: Optional[MappingConfig] = None,
        supports_all_drives: bool = True,
    ) -> "GoogleDriveController":
        """Create controller from a pre-built Drive service (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init(service, config or MappingConfig(), supports_all_drives)
        return obj

    def _init(self, service: Any, config: MappingConfig, supports_all_drives: bool) -> None:
        self._service = service
        self._page_size = config.batch_size
        self._supports_all_drives = supports_all_drives
        self._retry_policy = _RetryPolicy()

    # ----------------------------
    # Account
    # ----------------------------
    def get_account_key(self) -> str:
        """Return the signed-in account's email (the snapshot key)."""
        req = self._service.about().get(fields=ABOUT_FIELDS)
        data = self._execute(req.execute)
        email = (data.get("user") or {}).get("emailAddress")
        if not isinstance(email, str) or not email.strip():
            raise AuthError("Unauthorized", details={"reason": "no account email"})
        return email.strip().lower()

    # ----------------------------
    # Listing
    # ----------------------------
    def fetch_page(
        self,
        page_token: Optional[str] = None,
        include_access_entries: bool = True,
    ) -> ListPage:
        """
        Fetch one page of every non-trashed item visible to the account.

        Raises:
            GDrivePermsError subclass on any non-success response.
        """
        kwargs: dict[str, Any] = {
            "q": LIST_QUERY,
            "pageSize": self._page_size,
            "fields": list_fields(include_access_entries),
            "orderBy": LIST_ORDER_BY,
            **self._common_list_kwargs(),
        }
        if page_token:
            kwargs["pageToken"] = page_token

        req = self._service.files().list(**kwargs)
        # Normalization runs inside the mapped boundary: a malformed item
        # surfaces as ApiError like any other bad response.
        return self._execute_once(lambda: _list_response_to_page(req.execute()))

    # ----------------------------
    # Permissions
    # ----------------------------
    def list_permissions(self, file_id: str) -> list[AccessEntry]:
        entries: list[AccessEntry] = []
        page_token: Optional[str] = None

        while True:
            req = self._service.permissions().list(
                fileId=file_id,
                fields=PERMISSION_LIST_FIELDS,
                pageToken=page_token,
                **self._common_get_kwargs(),
            )
            data = self._execute(req.execute)
            entries.extend(_permission_dicts_to_entries(data.get("permissions", [])))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return entries

    def get_permission(self, file_id: str, permission_id: str) -> AccessEntry:
        req = self._service.permissions().get(
            fileId=file_id,
            permissionId=permission_id,
            fields=PERMISSION_FIELDS,
            **self._common_get_kwargs(),
        )
        data = self._execute(req.execute)
        entry = _permission_dict_to_entry(data)
        if entry is None:
            raise ApiError(
                "Drive returned an unrecognized permission",
                details={"file_id": file_id, "permission_id": permission_id},
            )
        return entry

    def create_permission(
        self,
        file_id: str,
        body: dict[str, Any],
        *,
        send_notification: bool = False,
    ) -> AccessEntry:
        req = self._service.permissions().create(
            fileId=file_id,
            body=body,
            sendNotificationEmail=send_notification,
            fields=PERMISSION_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req.execute)
        entry = _permission_dict_to_entry(data)
        if entry is None:
            raise ApiError(
                "Drive returned an unrecognized permission",
                details={"file_id": file_id},
            )
        return entry

    def delete_permission(self, file_id: str, permission_id: str) -> None:
        req = self._service.permissions().delete(
            fileId=file_id,
            permissionId=permission_id,
            **self._common_write_kwargs(),
        )
        self._execute(req.execute)

    # ----------------------------
    # Internals
    # ----------------------------
    def _common_get_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _common_list_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True, "includeItemsFromAllDrives": True}

    def _common_write_kwargs(self) -> dict[str, Any]:
        return self._common_get_kwargs()

    def _execute_once(self, func: Callable[[], T]) -> T:
        try:
            return func()
        except Exception as exc:
            raise _map_exception(exc) from exc

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = _map_exception(exc)
                if is_transient(mapped) and attempt < self._retry_policy.max_retries:
                    logger.warning(
                        "Drive request failed (%s), retrying in %.1fs", mapped, delay
                    )
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")


def _map_exception(exc: Exception) -> Exception:
    from googleapiclient.errors import HttpError

    if isinstance(exc, HttpError):
        return map_http_error(_http_error_to_info(exc), cause=exc)

    if isinstance(exc, (OSError, TimeoutError, socket.timeout)):
        return NetworkError("Network error", details={"error": str(exc)}, cause=exc)

    return ApiError("Drive API error", details={"error": str(exc)}, cause=exc)


def _list_response_to_page(data: dict[str, Any]) -> ListPage:
    records = [_file_dict_to_record(item) for item in data.get("files", []) or []]
    next_token = data.get("nextPageToken")
    return ListPage(
        records=records,
        next_page_token=next_token if isinstance(next_token, str) and next_token else None,
    )


def _file_dict_to_record(data: dict[str, Any]) -> FileRecord:
    file_id = data.get("id")
    name = data.get("name")
    mime_type = data.get("mimeType")
    mime_type = mime_type if isinstance(mime_type, str) else ""

    parents = data.get("parents") or []
    parent_id = parents[0] if isinstance(parents, list) and parents else None

    owners = data.get("owners") or []
    owner_identity = None
    if isinstance(owners, list) and owners and isinstance(owners[0], dict):
        owner_identity = owners[0].get("emailAddress")

    link = data.get("webViewLink")

    # quotaBytesUsed covers binary files; size is absent for Workspace docs.
    # A reported quota of 0 is kept as 0.
    size_bytes = _parse_size(data.get("quotaBytesUsed"))
    if size_bytes is None:
        size_bytes = _parse_size(data.get("size"))

    return FileRecord(
        id=file_id if isinstance(file_id, str) else "",
        name=name if isinstance(name, str) else "",
        is_container=mime_type == FOLDER_MIME,
        parent_id=parent_id if isinstance(parent_id, str) else None,
        mime_type=mime_type,
        is_shared=bool(data.get("shared", False)),
        access_entries=_permission_dicts_to_entries(data.get("permissions", [])),
        external_link=link if isinstance(link, str) else None,
        last_modified=parse_rfc3339_or_none(data.get("modifiedTime")),
        size_bytes=size_bytes,
        owner_identity=owner_identity if isinstance(owner_identity, str) else None,
    )


def _permission_dicts_to_entries(items: Any) -> list[AccessEntry]:
    if not isinstance(items, list):
        return []
    entries: list[AccessEntry] = []
    for item in items:
        entry = _permission_dict_to_entry(item)
        if entry is not None:
            entries.append(entry)
    return entries


def _permission_dict_to_entry(data: Any) -> Optional[AccessEntry]:
    if not isinstance(data, dict) or not isinstance(data.get("id"), str):
        return None

    try:
        kind = SubjectKind(data.get("type"))
        level = AccessLevel(data.get("role"))
    except ValueError:
        logger.warning(
            "Skipping permission %s with unknown type/role %r/%r",
            data.get("id"),
            data.get("type"),
            data.get("role"),
        )
        return None

    if kind is SubjectKind.ORGANIZATION_DOMAIN:
        identity = data.get("domain")
    elif kind is SubjectKind.ANYONE_WITH_LINK:
        identity = None
    else:
        identity = data.get("emailAddress")

    display_name = data.get("displayName")
    return AccessEntry(
        id=data["id"],
        subject_kind=kind,
        access_level=level,
        subject_identity=identity if isinstance(identity, str) else None,
        display_name=display_name if isinstance(display_name, str) else None,
        expires_at=parse_rfc3339_or_none(data.get("expirationTime")),
        is_deleted_subject=bool(data.get("deleted", False)),
        pending_owner=bool(data.get("pendingOwner", False)),
    )


def _parse_size(value: Any) -> Optional[int]:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = None

        err = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                details["domain"] = errors[0].get("domain")
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message if isinstance(message, str) else None,
        details=details or None,
    )
