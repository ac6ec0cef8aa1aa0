import unittest
from datetime import timedelta
from unittest.mock import patch

from gdriveperms.config import MappingConfig
from gdriveperms.errors import (
    ApiError,
    AuthError,
    InvalidStateError,
    NotFoundError,
    RateLimitError,
    StoreError,
)
from gdriveperms.mapping import MappingOrchestrator, MappingState
from gdriveperms.models import (
    AccessEntry,
    AccessLevel,
    FileRecord,
    ListPage,
    MappingSnapshot,
    SubjectKind,
)
from gdriveperms.store import MemorySnapshotStore
from gdriveperms.util.timefmt import now_utc

ACCOUNT = "me@example.com"


def _page_records(page_no: int, size: int) -> list[FileRecord]:
    return [
        FileRecord(
            id=f"p{page_no}-{i}",
            name=f"file-{page_no}-{i}",
            is_container=False,
            parent_id="root-folder",
        )
        for i in range(size)
    ]


class FakeLister:
    """Serves pre-built pages; a page may be an exception to raise instead."""

    def __init__(self, pages) -> None:
        self.pages = list(pages)
        self.calls: list[tuple] = []

    def fetch_page(self, page_token=None, include_access_entries=True) -> ListPage:
        self.calls.append((page_token, include_access_entries))
        index = 0 if page_token is None else int(page_token)
        item = self.pages[index]
        if isinstance(item, BaseException):
            raise item
        next_token = str(index + 1) if index + 1 < len(self.pages) else None
        return ListPage(records=item, next_page_token=next_token)


class FailingSaveStore(MemorySnapshotStore):
    def save(self, snapshot: MappingSnapshot) -> None:
        raise StoreError("disk full")


class TestMappingOrchestrator(unittest.TestCase):
    def _make(self, pages, *, store=None, **config_kwargs):
        config_kwargs.setdefault("batch_size", 100)
        config = MappingConfig(**config_kwargs)
        lister = FakeLister(pages)
        store = store if store is not None else MemorySnapshotStore()
        return MappingOrchestrator(lister, store, config), lister, store

    def test_initial_state_is_idle(self) -> None:
        orch, _, _ = self._make([[]])
        self.assertEqual(orch.state, MappingState.IDLE)
        self.assertEqual(orch.records, [])

    def test_full_run_concatenates_pages_in_order(self) -> None:
        pages = [_page_records(n, 100) for n in range(3)]
        orch, lister, store = self._make(pages)

        state = orch.start_mapping(ACCOUNT)

        self.assertEqual(state, MappingState.COMPLETE)
        expected_ids = [r.id for page in pages for r in page]
        self.assertEqual([r.id for r in orch.records], expected_ids)
        self.assertEqual(len(lister.calls), 3)
        self.assertEqual(lister.calls[1], ("1", True))
        self.assertEqual(orch.progress.current, 300)
        self.assertEqual(orch.progress.estimated_total, 300)
        self.assertFalse(orch.is_truncated)

        snapshot = store.load(ACCOUNT)
        self.assertIsNotNone(snapshot)
        self.assertTrue(snapshot.is_complete)
        self.assertEqual(snapshot.record_count, 300)
        self.assertEqual([r.id for r in snapshot.records], expected_ids)

    def test_paths_resolved_before_publish(self) -> None:
        pages = [
            [FileRecord(id="C", name="doc.txt", is_container=False, parent_id="P")],
            [FileRecord(id="P", name="Folder", is_container=True, parent_id="outside")],
        ]
        orch, _, store = self._make(pages)
        orch.start_mapping(ACCOUNT)
        self.assertEqual(orch.get("C").path, "Folder/doc.txt")
        self.assertEqual(store.load(ACCOUNT).records[0].path, "Folder/doc.txt")

    def test_progress_estimates_one_more_batch(self) -> None:
        seen = []
        pages = [_page_records(0, 10), _page_records(1, 10)]
        orch, lister, _ = self._make(pages, batch_size=10)

        original = lister.fetch_page

        def spy(page_token=None, include_access_entries=True):
            seen.append(orch.progress)
            return original(page_token, include_access_entries)

        lister.fetch_page = spy  # type: ignore[assignment]
        orch.start_mapping(ACCOUNT)

        self.assertEqual(seen[1].current, 10)
        self.assertEqual(seen[1].estimated_total, 20)
        self.assertEqual(orch.progress.estimated_total, 20)

    def test_safety_ceiling_truncates_but_completes(self) -> None:
        pages = [_page_records(n, 100) for n in range(5)]
        orch, lister, store = self._make(pages, max_records=250)

        state = orch.start_mapping(ACCOUNT)

        self.assertEqual(state, MappingState.COMPLETE)
        self.assertEqual(len(lister.calls), 3)
        self.assertEqual(len(orch.records), 250)
        self.assertTrue(orch.is_truncated)
        snapshot = store.load(ACCOUNT)
        self.assertTrue(snapshot.is_complete)
        self.assertTrue(snapshot.is_truncated)
        self.assertEqual(snapshot.record_count, 250)

    def test_ceiling_exactly_reached_on_last_page_is_not_truncated(self) -> None:
        pages = [_page_records(0, 100), _page_records(1, 100)]
        orch, _, _ = self._make(pages, max_records=200)
        orch.start_mapping(ACCOUNT)
        self.assertEqual(len(orch.records), 200)
        self.assertFalse(orch.is_truncated)

    def test_fresh_snapshot_is_cache_hit(self) -> None:
        store = MemorySnapshotStore()
        records = [FileRecord(id="A", name="a", is_container=False, path="a")]
        store.save(
            MappingSnapshot(owner_account_key=ACCOUNT, records=records, captured_at=now_utc())
        )
        orch, lister, _ = self._make([[]], store=store)

        state = orch.start_mapping(ACCOUNT)

        self.assertEqual(state, MappingState.COMPLETE)
        self.assertEqual(lister.calls, [])
        self.assertEqual(orch.records, records)
        self.assertTrue(orch.from_cache)
        self.assertEqual(orch.progress.current, 1)
        self.assertEqual(orch.progress.estimated_total, 1)

    def test_stale_snapshot_triggers_remap(self) -> None:
        store = MemorySnapshotStore()
        store.save(
            MappingSnapshot(
                owner_account_key=ACCOUNT,
                records=[FileRecord(id="OLD", name="old", is_container=False)],
                captured_at=now_utc() - timedelta(days=2),
            )
        )
        orch, lister, _ = self._make([_page_records(0, 2)], store=store)

        orch.start_mapping(ACCOUNT)

        self.assertEqual(len(lister.calls), 1)
        self.assertNotIn("OLD", [r.id for r in orch.records])
        self.assertFalse(orch.from_cache)

    def test_incomplete_snapshot_is_ignored(self) -> None:
        store = MemorySnapshotStore()
        store.save(
            MappingSnapshot(
                owner_account_key=ACCOUNT,
                records=[],
                captured_at=now_utc(),
                is_complete=False,
            )
        )
        orch, lister, _ = self._make([_page_records(0, 1)], store=store)
        orch.start_mapping(ACCOUNT)
        self.assertEqual(len(lister.calls), 1)

    def test_remap_ignores_fresh_snapshot(self) -> None:
        pages = [_page_records(0, 3)]
        orch, lister, _ = self._make(pages)
        orch.start_mapping(ACCOUNT)
        self.assertEqual(len(lister.calls), 1)

        orch.remap()

        self.assertEqual(len(lister.calls), 2)
        self.assertEqual(orch.state, MappingState.COMPLETE)

    def test_failure_on_page_two_keeps_partial_records_unpersisted(self) -> None:
        pages = [_page_records(0, 100), NotFoundError("File not found: xyz")]
        store = MemorySnapshotStore()
        store.save(
            MappingSnapshot(owner_account_key=ACCOUNT, records=[], captured_at=now_utc())
        )
        orch, _, _ = self._make(pages, store=store)

        state = orch.remap(ACCOUNT)

        self.assertEqual(state, MappingState.FAILED)
        self.assertEqual(orch.error, "File not found: xyz")
        self.assertEqual(len(orch.records), 100)
        self.assertEqual(orch.progress.current, 100)
        self.assertEqual(orch.progress.estimated_total, 200)
        # Cleared at run start and never rewritten.
        self.assertIsNone(store.load(ACCOUNT))

    def test_retry_after_failure(self) -> None:
        pages = [_page_records(0, 5), NotFoundError("gone")]
        orch, lister, _ = self._make(pages)
        orch.start_mapping(ACCOUNT)
        self.assertEqual(orch.state, MappingState.FAILED)

        lister.pages[1] = _page_records(1, 5)
        state = orch.remap()

        self.assertEqual(state, MappingState.COMPLETE)
        self.assertEqual(len(orch.records), 10)
        self.assertIsNone(orch.error)

    def test_unexpected_lister_error_fails_and_allows_remap(self) -> None:
        pages = [_page_records(0, 3), RuntimeError("connection reset")]
        orch, lister, store = self._make(pages)

        state = orch.start_mapping(ACCOUNT)

        self.assertEqual(state, MappingState.FAILED)
        self.assertTrue(orch.error)
        self.assertEqual(len(orch.records), 3)
        self.assertIsNone(store.load(ACCOUNT))

        lister.pages[1] = _page_records(1, 2)
        self.assertEqual(orch.remap(), MappingState.COMPLETE)
        self.assertEqual(len(orch.records), 5)

    def test_interrupt_does_not_leave_run_loading(self) -> None:
        orch, _, _ = self._make([KeyboardInterrupt()])

        with self.assertRaises(KeyboardInterrupt):
            orch.start_mapping(ACCOUNT)

        self.assertEqual(orch.state, MappingState.FAILED)
        self.assertTrue(orch.error)

    def test_transient_page_error_is_retried(self) -> None:
        pages = [_page_records(0, 2)]
        orch, lister, _ = self._make(pages, page_retries=2)
        original = lister.fetch_page
        failures = [RateLimitError("slow down")]

        def flaky(page_token=None, include_access_entries=True):
            if failures:
                raise failures.pop()
            return original(page_token, include_access_entries)

        lister.fetch_page = flaky  # type: ignore[assignment]

        with patch("time.sleep", return_value=None) as sleep:
            state = orch.start_mapping(ACCOUNT)

        self.assertEqual(state, MappingState.COMPLETE)
        self.assertEqual(sleep.call_count, 1)

    def test_transient_error_exhausting_retries_fails(self) -> None:
        err = ApiError("backend error", details={"status_code": 503})
        orch, lister, _ = self._make([err], page_retries=2)

        with patch("time.sleep", return_value=None):
            state = orch.start_mapping(ACCOUNT)

        self.assertEqual(state, MappingState.FAILED)
        self.assertEqual(len(lister.calls), 3)

    def test_store_save_failure_marks_failed(self) -> None:
        orch, _, _ = self._make([_page_records(0, 3)], store=FailingSaveStore())
        state = orch.start_mapping(ACCOUNT)
        self.assertEqual(state, MappingState.FAILED)
        self.assertEqual(orch.error, "disk full")
        self.assertEqual(len(orch.records), 3)

    def test_missing_account_is_unauthorized(self) -> None:
        orch, lister, _ = self._make([[]])
        with self.assertRaises(AuthError):
            orch.start_mapping("  ")
        self.assertEqual(lister.calls, [])
        self.assertEqual(orch.state, MappingState.IDLE)

    def test_remap_while_loading_is_rejected(self) -> None:
        orch, lister, _ = self._make([_page_records(0, 1), _page_records(1, 1)])
        original = lister.fetch_page
        errors = []

        def reentrant(page_token=None, include_access_entries=True):
            try:
                orch.remap(ACCOUNT)
            except InvalidStateError as exc:
                errors.append(exc)
            return original(page_token, include_access_entries)

        lister.fetch_page = reentrant  # type: ignore[assignment]
        orch.start_mapping(ACCOUNT)

        self.assertEqual(len(errors), 2)
        self.assertEqual(orch.state, MappingState.COMPLETE)


class TestApplyPermissionMutation(unittest.TestCase):
    def setUp(self) -> None:
        pages = [_page_records(0, 3)]
        self.store = MemorySnapshotStore()
        self.orch = MappingOrchestrator(FakeLister(pages), self.store, MappingConfig())
        self.orch.start_mapping(ACCOUNT)
        self.entries = [
            AccessEntry(
                id="perm1",
                subject_kind=SubjectKind.INDIVIDUAL,
                access_level=AccessLevel.EDITOR,
                subject_identity="friend@example.com",
            )
        ]

    def test_replaces_only_target_record(self) -> None:
        before = [r.to_dict() for r in self.orch.records]

        updated = self.orch.apply_permission_mutation("p0-1", self.entries)

        self.assertTrue(updated)
        after = [r.to_dict() for r in self.orch.records]
        self.assertEqual(after[0], before[0])
        self.assertEqual(after[2], before[2])
        self.assertEqual(self.orch.get("p0-1").access_entries, self.entries)

    def test_unknown_id_is_noop(self) -> None:
        before = [r.to_dict() for r in self.orch.records]
        self.assertFalse(self.orch.apply_permission_mutation("nope", self.entries))
        self.assertEqual([r.to_dict() for r in self.orch.records], before)

    def test_store_is_not_patched(self) -> None:
        self.orch.apply_permission_mutation("p0-0", self.entries)
        stored = self.store.load(ACCOUNT)
        self.assertEqual(stored.records[0].access_entries, [])


if __name__ == "__main__":
    unittest.main()
