"""PermissionsManager: one signed-in account's map plus sharing changes."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from gdriveperms.auth import AuthInfo
from gdriveperms.config import MappingConfig
from gdriveperms.controller import GoogleDriveController
from gdriveperms.errors import GDrivePermsError, InvalidStateError
from gdriveperms.mapping import MappingOrchestrator, MappingState
from gdriveperms.models import (
    AccessEntry,
    AccessLevel,
    BulkResult,
    FileRecord,
    MappingProgress,
    SubjectKind,
)
from gdriveperms.permissions import PermissionService
from gdriveperms.store import SnapshotStore

logger = logging.getLogger(__name__)


class PermissionsManager:
    """
    High-level entry point for a permissions dashboard.

    open() maps the account (or reuses a fresh snapshot). Mutations go to
    Drive first; on success the affected file's entries are re-listed and
    pushed into the in-memory map. The stored snapshot is only rewritten by
    remap().
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        store: SnapshotStore,
        *,
        config: Optional[MappingConfig] = None,
        scopes: Optional[Sequence[str]] = None,
        supports_all_drives: bool = True,
    ) -> None:
        cfg = config or MappingConfig()
        controller = GoogleDriveController(
            auth_info,
            scopes=scopes,
            config=cfg,
            supports_all_drives=supports_all_drives,
        )
        self._init(controller, store, cfg)

    @classmethod
    def from_controller(
        cls,
        controller: GoogleDriveController,
        store: SnapshotStore,
        *,
        config: Optional[MappingConfig] = None,
    ) -> "PermissionsManager":
        """Create manager with an injected controller (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init(controller, store, config or MappingConfig())
        return obj

    def _init(
        self,
        controller: GoogleDriveController,
        store: SnapshotStore,
        config: MappingConfig,
    ) -> None:
        self._controller = controller
        self._orchestrator = MappingOrchestrator(controller, store, config)
        self._permissions = PermissionService(controller)

    # ----------------------------
    # Mapping
    # ----------------------------
    @property
    def orchestrator(self) -> MappingOrchestrator:
        return self._orchestrator

    @property
    def state(self) -> MappingState:
        return self._orchestrator.state

    @property
    def records(self) -> list[FileRecord]:
        return self._orchestrator.records

    @property
    def progress(self) -> MappingProgress:
        return self._orchestrator.progress

    @property
    def error(self) -> Optional[str]:
        return self._orchestrator.error

    def open(self, account_key: Optional[str] = None) -> MappingState:
        """
        Start a mapping session.

        When account_key is omitted the signed-in Drive account is asked for
        its email; an AuthError there ends the call before any mapping.
        """
        key = account_key if account_key is not None else self._controller.get_account_key()
        return self._orchestrator.start_mapping(key)

    def remap(self) -> MappingState:
        if self._orchestrator.account_key is None:
            raise InvalidStateError("No account opened. Call open() first.")
        return self._orchestrator.remap()

    # ----------------------------
    # Sharing changes
    # ----------------------------
    def list_entries(self, file_id: str) -> list[AccessEntry]:
        return self._permissions.list_entries(file_id)

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
        entry = self._permissions.add_entry(
            file_id,
            subject_kind,
            access_level,
            email=email,
            domain=domain,
            send_notification=send_notification,
        )
        self._refresh_entries([file_id])
        return entry

    def remove_entry(self, file_id: str, entry_id: str) -> None:
        self._permissions.remove_entry(file_id, entry_id)
        self._refresh_entries([file_id])

    def bulk_add(
        self,
        file_ids: Sequence[str],
        subject_kind: Union[str, SubjectKind],
        access_level: Union[str, AccessLevel],
        *,
        email: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> BulkResult:
        result = self._permissions.bulk_add(
            file_ids,
            subject_kind,
            access_level,
            email=email,
            domain=domain,
        )
        self._refresh_entries(result.succeeded_ids)
        return result

    def bulk_remove(self, file_ids: Sequence[str], email: str) -> BulkResult:
        result = self._permissions.bulk_remove(file_ids, email)
        self._refresh_entries(result.succeeded_ids)
        return result

    def _refresh_entries(self, file_ids: Sequence[str]) -> None:
        """Re-list entries for mapped files; failures leave the old view in place."""
        if self._orchestrator.state is MappingState.LOADING:
            return
        for file_id in file_ids:
            if self._orchestrator.get(file_id) is None:
                continue
            try:
                entries = self._controller.list_permissions(file_id)
            except GDrivePermsError as exc:
                logger.warning("Could not refresh entries for %s: %s", file_id, exc)
                continue
            self._orchestrator.apply_permission_mutation(file_id, entries)
