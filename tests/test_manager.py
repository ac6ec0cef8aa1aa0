import unittest

from gdriveperms.errors import AuthError, InvalidStateError, NotFoundError
from gdriveperms.manager import PermissionsManager
from gdriveperms.mapping import MappingState
from gdriveperms.models import AccessEntry, AccessLevel, FileRecord, ListPage, SubjectKind
from gdriveperms.store import MemorySnapshotStore

FOLDER = "folder_id_001"
DOC = "doc_id_000001"
SHEET = "sheet_id_0001"


class FakeController:
    def __init__(self) -> None:
        self.calls = []
        self.account = "me@example.com"
        self.entries = {
            FOLDER: [AccessEntry("owner1", SubjectKind.INDIVIDUAL, AccessLevel.OWNER,
                                 subject_identity="me@example.com")],
            DOC: [AccessEntry("owner1", SubjectKind.INDIVIDUAL, AccessLevel.OWNER,
                              subject_identity="me@example.com")],
            SHEET: [AccessEntry("owner1", SubjectKind.INDIVIDUAL, AccessLevel.OWNER,
                                subject_identity="me@example.com")],
        }

    def get_account_key(self) -> str:
        self.calls.append(("get_account_key",))
        if self.account is None:
            raise AuthError("Unauthorized")
        return self.account

    def fetch_page(self, page_token=None, include_access_entries=True) -> ListPage:
        self.calls.append(("fetch_page", page_token))
        if page_token is None:
            return ListPage(
                records=[
                    FileRecord(id=FOLDER, name="Shared", is_container=True,
                               access_entries=list(self.entries[FOLDER])),
                    FileRecord(id=DOC, name="notes.txt", is_container=False, parent_id=FOLDER,
                               access_entries=list(self.entries[DOC])),
                ],
                next_page_token="2",
            )
        return ListPage(
            records=[FileRecord(id=SHEET, name="sheet", is_container=False, parent_id=FOLDER,
                                access_entries=list(self.entries[SHEET]))],
        )

    def list_permissions(self, file_id):
        self.calls.append(("list_permissions", file_id))
        return list(self.entries[file_id])

    def get_permission(self, file_id, permission_id):
        for entry in self.entries[file_id]:
            if entry.id == permission_id:
                return entry
        raise NotFoundError("Permission not found")

    def create_permission(self, file_id, body, *, send_notification=False):
        self.calls.append(("create_permission", file_id))
        if file_id == SHEET:
            raise NotFoundError("File not found: sheet")
        entry = AccessEntry(f"new_{file_id}", SubjectKind(body["type"]), AccessLevel(body["role"]),
                            subject_identity=body.get("emailAddress"))
        self.entries[file_id].append(entry)
        return entry

    def delete_permission(self, file_id, permission_id):
        self.calls.append(("delete_permission", file_id, permission_id))
        self.entries[file_id] = [e for e in self.entries[file_id] if e.id != permission_id]


class TestPermissionsManager(unittest.TestCase):
    def setUp(self) -> None:
        self.controller = FakeController()
        self.store = MemorySnapshotStore()
        self.mgr = PermissionsManager.from_controller(self.controller, self.store)

    def test_open_resolves_account_and_maps(self) -> None:
        state = self.mgr.open()

        self.assertEqual(state, MappingState.COMPLETE)
        self.assertEqual(self.controller.calls[0], ("get_account_key",))
        paths = {r.id: r.path for r in self.mgr.records}
        self.assertEqual(paths[DOC], "Shared/notes.txt")
        self.assertIsNotNone(self.store.load("me@example.com"))

    def test_second_open_uses_snapshot(self) -> None:
        self.mgr.open()
        other = PermissionsManager.from_controller(self.controller, self.store)
        fetches_before = sum(1 for c in self.controller.calls if c[0] == "fetch_page")

        other.open("me@example.com")

        fetches_after = sum(1 for c in self.controller.calls if c[0] == "fetch_page")
        self.assertEqual(fetches_before, fetches_after)
        self.assertEqual(len(other.records), 3)

    def test_open_unauthorized_stops_before_mapping(self) -> None:
        self.controller.account = None
        with self.assertRaises(AuthError):
            self.mgr.open()
        self.assertEqual(self.mgr.state, MappingState.IDLE)
        self.assertNotIn("fetch_page", [c[0] for c in self.controller.calls])

    def test_remap_requires_open(self) -> None:
        with self.assertRaises(InvalidStateError):
            self.mgr.remap()

    def test_add_entry_refreshes_in_memory_record_only(self) -> None:
        self.mgr.open()
        self.mgr.add_entry(DOC, "user", "writer", email="friend@example.com")

        doc = self.mgr.orchestrator.get(DOC)
        self.assertEqual([e.id for e in doc.access_entries], ["owner1", f"new_{DOC}"])
        stored = self.store.load("me@example.com")
        stored_doc = next(r for r in stored.records if r.id == DOC)
        self.assertEqual([e.id for e in stored_doc.access_entries], ["owner1"])

    def test_bulk_add_refreshes_successes(self) -> None:
        self.mgr.open()
        result = self.mgr.bulk_add([FOLDER, DOC, SHEET], "user", "reader", email="x@example.com")

        self.assertEqual(result.summary, {"total": 3, "success": 2, "failed": 1})
        refreshed = [c[1] for c in self.controller.calls if c[0] == "list_permissions"]
        self.assertEqual(refreshed, [FOLDER, DOC])
        self.assertEqual(len(self.mgr.orchestrator.get(SHEET).access_entries), 1)

    def test_bulk_remove_updates_records(self) -> None:
        self.mgr.open()
        self.mgr.bulk_add([FOLDER, DOC], "user", "reader", email="x@example.com")

        result = self.mgr.bulk_remove([FOLDER, DOC], "X@example.com")

        self.assertEqual(result.summary["success"], 2)
        self.assertEqual([e.id for e in self.mgr.orchestrator.get(DOC).access_entries], ["owner1"])

    def test_remove_entry(self) -> None:
        self.mgr.open()
        self.mgr.add_entry(DOC, "user", "writer", email="friend@example.com")
        self.mgr.remove_entry(DOC, f"new_{DOC}")
        self.assertEqual([e.id for e in self.mgr.orchestrator.get(DOC).access_entries], ["owner1"])


if __name__ == "__main__":
    unittest.main()
