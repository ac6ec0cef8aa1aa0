"""MappingOrchestrator: builds, caches and publishes an account's file map."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol, Sequence

from gdriveperms.config import MappingConfig
from gdriveperms.errors import (
    ApiError,
    AuthError,
    GDrivePermsError,
    InvalidStateError,
    StoreError,
    is_transient,
)
from gdriveperms.models import (
    AccessEntry,
    FileRecord,
    ListPage,
    MappingProgress,
    MappingSnapshot,
)
from gdriveperms.store import SnapshotStore
from gdriveperms.util.format import format_bytes
from gdriveperms.util.timefmt import is_older_than, now_utc

from .paths import resolve_paths

logger = logging.getLogger(__name__)


class MappingState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    COMPLETE = "complete"
    FAILED = "failed"


class PageLister(Protocol):
    def fetch_page(
        self,
        page_token: Optional[str] = None,
        include_access_entries: bool = True,
    ) -> ListPage: ...


class MappingOrchestrator:
    """
    Drives mapping runs for one account at a time and owns the in-memory map.

    State machine:
        IDLE -> LOADING -> COMPLETE
        LOADING -> FAILED
        COMPLETE/FAILED -> LOADING (remap)

    The stored snapshot is written once per successful run. Permission
    changes applied with apply_permission_mutation() stay in memory; the
    stored snapshot catches up on the next remap.
    """

    def __init__(
        self,
        lister: PageLister,
        store: SnapshotStore,
        config: Optional[MappingConfig] = None,
    ) -> None:
        self._lister = lister
        self._store = store
        self._config = config or MappingConfig()

        self._state = MappingState.IDLE
        self._account_key: Optional[str] = None
        self._records: list[FileRecord] = []
        self._index_by_id: dict[str, int] = {}
        self._progress = MappingProgress()
        self._error: Optional[str] = None
        self._truncated = False
        self._captured_at: Optional[datetime] = None
        self._from_cache = False

    # ----------------------------
    # Read APIs
    # ----------------------------
    @property
    def state(self) -> MappingState:
        return self._state

    @property
    def account_key(self) -> Optional[str]:
        return self._account_key

    @property
    def records(self) -> list[FileRecord]:
        """Current record collection (partial while LOADING or after FAILED)."""
        return list(self._records)

    @property
    def progress(self) -> MappingProgress:
        return self._progress

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_truncated(self) -> bool:
        """True when the safety ceiling cut the last run short."""
        return self._truncated

    @property
    def captured_at(self) -> Optional[datetime]:
        return self._captured_at

    @property
    def from_cache(self) -> bool:
        """True when the current records came from the store, not a fetch."""
        return self._from_cache

    def get(self, file_id: str) -> Optional[FileRecord]:
        index = self._index_by_id.get(file_id)
        return self._records[index] if index is not None else None

    # ----------------------------
    # Mapping runs
    # ----------------------------
    def start_mapping(self, account_key: str) -> MappingState:
        """
        Publish the stored snapshot if it is complete and fresh, otherwise
        run a full mapping.

        Raises:
            AuthError: if account_key is empty.
            InvalidStateError: if a run is already in progress.
        """
        key = self._begin(account_key)

        snapshot = self._load_usable_snapshot(key)
        if snapshot is not None:
            self._publish_snapshot(snapshot)
            logger.info(
                "Loaded %d records for %s from snapshot captured %s",
                snapshot.record_count,
                key,
                snapshot.captured_at,
            )
            return self._state

        return self._run(key)

    def remap(self, account_key: Optional[str] = None) -> MappingState:
        """Run a full mapping regardless of any stored snapshot."""
        key = self._begin(account_key if account_key is not None else self._account_key or "")
        return self._run(key)

    def apply_permission_mutation(
        self,
        file_id: str,
        new_access_entries: Sequence[AccessEntry],
    ) -> bool:
        """
        Replace the access entries of one in-memory record.

        The stored snapshot is not touched.

        Returns:
            True if a record was updated, False if file_id is unknown.

        Raises:
            InvalidStateError: while a run is LOADING.
        """
        if self._state is MappingState.LOADING:
            raise InvalidStateError("Cannot mutate records while mapping is in progress")

        index = self._index_by_id.get(file_id)
        if index is None:
            return False

        record = self._records[index]
        self._records[index] = replace(record, access_entries=list(new_access_entries))
        return True

    # ----------------------------
    # Internals
    # ----------------------------
    def _begin(self, account_key: str) -> str:
        if self._state is MappingState.LOADING:
            raise InvalidStateError("A mapping run is already in progress")
        key = account_key.strip() if isinstance(account_key, str) else ""
        if not key:
            raise AuthError("Unauthorized", details={"reason": "no signed-in account"})
        return key

    def _load_usable_snapshot(self, key: str) -> Optional[MappingSnapshot]:
        try:
            snapshot = self._store.load(key)
        except StoreError as exc:
            logger.warning("Ignoring unreadable snapshot for %s: %s", key, exc)
            return None

        if snapshot is None or not snapshot.is_complete:
            return None
        if is_older_than(snapshot.captured_at, self._config.max_age):
            logger.info("Snapshot for %s is stale (captured %s)", key, snapshot.captured_at)
            return None
        return snapshot

    def _publish_snapshot(self, snapshot: MappingSnapshot) -> None:
        self._account_key = snapshot.owner_account_key
        self._set_records(snapshot.records)
        self._progress = MappingProgress(snapshot.record_count, snapshot.record_count)
        self._truncated = snapshot.is_truncated
        self._captured_at = snapshot.captured_at
        self._error = None
        self._from_cache = True
        self._state = MappingState.COMPLETE

    def _run(self, key: str) -> MappingState:
        cfg = self._config
        self._account_key = key
        self._state = MappingState.LOADING
        self._set_records([])
        self._progress = MappingProgress()
        self._error = None
        self._truncated = False
        self._captured_at = None
        self._from_cache = False

        logger.info("Mapping started for %s", key)
        records: list[FileRecord] = []
        page_token: Optional[str] = None

        try:
            # A remap must never mix stale and fresh records.
            self._store.clear(key)

            while True:
                page = self._fetch_page(page_token)
                records.extend(page.records)
                page_token = page.next_page_token

                has_more = page.has_more and len(records) < cfg.max_records
                self._set_records(records)
                self._progress = MappingProgress(
                    current=len(records),
                    estimated_total=len(records) + (cfg.batch_size if has_more else 0),
                )
                logger.debug("Fetched %d records so far for %s", len(records), key)
                if not has_more:
                    break
        except GDrivePermsError as exc:
            return self._fail(key, exc)
        except Exception as exc:
            return self._fail(
                key,
                ApiError("Drive API error", details={"error": str(exc)}, cause=exc),
            )
        except BaseException:
            # A stopped run is never left LOADING.
            self._state = MappingState.FAILED
            self._error = "Mapping interrupted"
            raise

        truncated = len(records) > cfg.max_records or (
            page_token is not None and len(records) >= cfg.max_records
        )
        if truncated:
            logger.warning(
                "Mapping for %s stopped at the %d record ceiling", key, cfg.max_records
            )
            records = records[: cfg.max_records]

        resolved = resolve_paths(records)
        snapshot = MappingSnapshot(
            owner_account_key=key,
            records=resolved,
            captured_at=now_utc(),
            is_complete=True,
            is_truncated=truncated,
        )
        self._set_records(resolved)
        self._truncated = truncated

        try:
            self._store.save(snapshot)
        except StoreError as exc:
            return self._fail(key, exc)
        except Exception as exc:
            return self._fail(
                key,
                StoreError("Failed to save snapshot", details={"error": str(exc)}, cause=exc),
            )

        self._captured_at = snapshot.captured_at
        self._state = MappingState.COMPLETE
        logger.info(
            "Mapping complete for %s: %d records, %s",
            key,
            len(resolved),
            format_bytes(sum(r.size_bytes or 0 for r in resolved)),
        )
        return self._state

    def _fetch_page(self, page_token: Optional[str]) -> ListPage:
        cfg = self._config
        delay = cfg.retry_initial_delay_sec
        attempt = 0
        while True:
            try:
                return self._lister.fetch_page(page_token, cfg.include_access_entries)
            except GDrivePermsError as exc:
                if not is_transient(exc) or attempt >= cfg.page_retries:
                    raise
                attempt += 1
                logger.warning(
                    "Page fetch failed (%s); retry %d/%d in %.1fs",
                    exc,
                    attempt,
                    cfg.page_retries,
                    delay,
                )
                time.sleep(delay)
                delay *= 2

    def _fail(self, key: str, exc: GDrivePermsError) -> MappingState:
        self._error = str(exc) or exc.__class__.__name__
        self._state = MappingState.FAILED
        logger.error(
            "Mapping failed for %s after %d records: %s",
            key,
            len(self._records),
            self._error,
        )
        return self._state

    def _set_records(self, records: list[FileRecord]) -> None:
        self._records = list(records)
        self._index_by_id = {}
        for i, record in enumerate(self._records):
            self._index_by_id.setdefault(record.id, i)
