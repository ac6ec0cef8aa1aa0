"""PermissionService: single and bulk changes to sharing entries."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, Union

from gdriveperms.errors import GDrivePermsError, NotFoundError, ValidationError
from gdriveperms.models import (
    AccessEntry,
    AccessLevel,
    BulkResult,
    FileOutcome,
    SubjectKind,
)

from .validation import (
    build_permission_body,
    validate_email,
    validate_file_id,
    validate_permission_id,
)

logger = logging.getLogger(__name__)


class PermissionBackend(Protocol):
    def list_permissions(self, file_id: str) -> list[AccessEntry]: ...

    def get_permission(self, file_id: str, permission_id: str) -> AccessEntry: ...

    def create_permission(
        self,
        file_id: str,
        body: dict,
        *,
        send_notification: bool = False,
    ) -> AccessEntry: ...

    def delete_permission(self, file_id: str, permission_id: str) -> None: ...


class PermissionService:
    """
    Validated access-entry mutations against Drive.

    Policy:
        - Arguments are validated before any remote call (ValidationError).
        - Single operations raise gdriveperms errors.
        - Bulk operations never abort on a per-file failure; every file gets a
          FileOutcome and the summary counts total/success/failed.
        - Owner entries are never removed.
    """

    def __init__(self, backend: PermissionBackend) -> None:
        self._backend = backend

    def list_entries(self, file_id: str) -> list[AccessEntry]:
        return self._backend.list_permissions(validate_file_id(file_id))

    def add_entry(
        self,
        file_id: str,
        subject_kind: Union[str, SubjectKind],
        access_level: Union[str, AccessLevel],
        *,
        email: Optional[str] = None,
        domain: Optional[str] = None,
        send_notification: bool = False,
    ) -> AccessEntry:
        validate_file_id(file_id)
        body = build_permission_body(subject_kind, access_level, email=email, domain=domain)
        entry = self._backend.create_permission(
            file_id,
            body,
            send_notification=send_notification,
        )
        logger.info("Added %s %s entry %s on %s", body["type"], body["role"], entry.id, file_id)
        return entry

    def remove_entry(self, file_id: str, entry_id: str) -> None:
        validate_file_id(file_id)
        validate_permission_id(entry_id)

        entry = self._backend.get_permission(file_id, entry_id)
        _ensure_removable(entry, file_id)
        self._backend.delete_permission(file_id, entry_id)
        logger.info("Removed entry %s from %s", entry_id, file_id)

    def bulk_add(
        self,
        file_ids: Sequence[str],
        subject_kind: Union[str, SubjectKind],
        access_level: Union[str, AccessLevel],
        *,
        email: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> BulkResult:
        """Add the same grant to every file (no notification emails)."""
        ids = _validate_file_ids(file_ids)
        body = build_permission_body(subject_kind, access_level, email=email, domain=domain)

        results: list[FileOutcome] = []
        for file_id in ids:
            try:
                entry = self._backend.create_permission(file_id, dict(body))
            except GDrivePermsError as exc:
                results.append(_failed(file_id, exc))
                continue
            results.append(FileOutcome(file_id=file_id, success=True, entry_id=entry.id))

        return _bulk_result(results, "add")

    def bulk_remove(self, file_ids: Sequence[str], email: str) -> BulkResult:
        """Remove the entry whose subject matches ``email`` (any case) from every file."""
        ids = _validate_file_ids(file_ids)
        if not email:
            raise ValidationError("Email address is required for remove action")
        validate_email(email)

        results: list[FileOutcome] = []
        for file_id in ids:
            try:
                entries = self._backend.list_permissions(file_id)
                entry = next((e for e in entries if e.matches_identity(email)), None)
                if entry is None:
                    raise NotFoundError("Permission not found", details={"file_id": file_id})
                _ensure_removable(entry, file_id)
                self._backend.delete_permission(file_id, entry.id)
            except GDrivePermsError as exc:
                results.append(_failed(file_id, exc))
                continue
            results.append(FileOutcome(file_id=file_id, success=True, entry_id=entry.id))

        return _bulk_result(results, "remove")


def _validate_file_ids(file_ids: Sequence[str]) -> list[str]:
    if isinstance(file_ids, str) or not file_ids:
        raise ValidationError("File IDs are required")
    return [validate_file_id(file_id) for file_id in file_ids]


def _ensure_removable(entry: AccessEntry, file_id: str) -> None:
    if entry.is_owner:
        raise ValidationError(
            "Owner permission cannot be removed",
            details={"file_id": file_id, "permission_id": entry.id},
        )


def _failed(file_id: str, exc: GDrivePermsError) -> FileOutcome:
    logger.warning("Bulk operation failed for %s: %s", file_id, exc)
    return FileOutcome(file_id=file_id, success=False, error=str(exc))


def _bulk_result(results: list[FileOutcome], action: str) -> BulkResult:
    succeeded = sum(1 for r in results if r.success)
    summary = {
        "total": len(results),
        "success": succeeded,
        "failed": len(results) - succeeded,
    }
    logger.info("Bulk %s finished: %s", action, summary)
    return BulkResult(results=results, summary=summary)
