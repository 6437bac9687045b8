import json
import tempfile
import unittest
from pathlib import Path

from clubsite.errors import BackendUnavailable, ConflictError
from clubsite.filestore import JsonDocumentStore, LocalFileStore, sort_records
from clubsite.records import HIGHLIGHTS, LEADERBOARD, POWER_STONES, PROJECTS


class LocalFileStoreTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)

    def test_missing_file_reads_as_empty(self):
        store = LocalFileStore(self.root / "projects.json", "projects")
        self.assertEqual(store.read(), {"projects": []})

    def test_corrupt_or_misshapen_file_reads_as_empty(self):
        path = self.root / "projects.json"
        path.write_text("{not json", encoding="utf-8")
        self.assertEqual(LocalFileStore(path, "projects").records(), [])

        path.write_text(json.dumps({"projects": {"id": "x"}}), encoding="utf-8")
        self.assertEqual(LocalFileStore(path, "projects").records(), [])

    def test_write_creates_directory_and_pretty_prints(self):
        path = self.root / "nested" / "projects.json"
        store = LocalFileStore(path, "projects")
        store.replace_records([{"id": "a", "title": "Café"}])

        text = path.read_text(encoding="utf-8")
        self.assertIn("Café", text)
        self.assertIn('\n  "projects"', text)
        self.assertEqual(store.records(), [{"id": "a", "title": "Café"}])


class SortRecordsTests(unittest.TestCase):
    def test_multi_key_sort_with_directions(self):
        records = [
            {"id": "a", "score": 5, "createdAt": "2025-01-01"},
            {"id": "b", "score": 9, "createdAt": "2025-01-01"},
            {"id": "c", "score": 5, "createdAt": "2025-02-01"},
        ]
        ordered = sort_records(records, LEADERBOARD.sort)
        self.assertEqual([doc["id"] for doc in ordered], ["b", "c", "a"])

    def test_missing_values_sort_first_ascending(self):
        records = [{"id": "a", "order": 2}, {"id": "b"}, {"id": "c", "order": 1}]
        ordered = sort_records(records, (("order", 1),))
        self.assertEqual([doc["id"] for doc in ordered], ["b", "c", "a"])


class JsonDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.store = JsonDocumentStore(self.root, {"projects", "power-stones"})

    def test_upsert_is_idempotent_per_key(self):
        record = {"id": "p1", "type": "flagship", "title": "One"}
        self.store.upsert(PROJECTS, {"id": "p1"}, record)
        self.store.upsert(PROJECTS, {"id": "p1"}, {**record, "title": "Uno"})

        docs = self.store.find(PROJECTS)
        self.assertEqual(len(docs), 1)
        self.assertEqual(docs[0]["title"], "Uno")

        on_disk = json.loads((self.root / "projects.json").read_text(encoding="utf-8"))
        self.assertEqual(on_disk["projects"][0]["id"], "p1")

    def test_find_filters_sorts_and_limits(self):
        for pid, kind, title in [("1", "upcoming", "B"), ("2", "flagship", "C"), ("3", "flagship", "A")]:
            self.store.upsert(PROJECTS, {"id": pid}, {"id": pid, "type": kind, "title": title})

        flagship = self.store.find(PROJECTS, {"type": "flagship"}, sort=PROJECTS.sort)
        self.assertEqual([doc["title"] for doc in flagship], ["A", "C"])
        self.assertEqual(len(self.store.find(PROJECTS, limit=2)), 2)
        self.assertEqual(self.store.count(PROJECTS, {"type": "upcoming"}), 1)

    def test_update_and_delete_report_missing_records(self):
        self.assertIsNone(self.store.update(PROJECTS, {"id": "nope"}, {"title": "x"}))
        self.assertFalse(self.store.delete(PROJECTS, {"id": "nope"}))

        self.store.upsert(PROJECTS, {"id": "p1"}, {"id": "p1", "title": "One"})
        updated = self.store.update(PROJECTS, {"id": "p1"}, {"title": "Two"})
        self.assertEqual(updated["title"], "Two")
        self.assertTrue(self.store.delete(PROJECTS, {"id": "p1"}))
        self.assertEqual(self.store.find(PROJECTS), [])

    def test_deleting_missing_id_leaves_files_untouched(self):
        path = self.root / "projects.json"
        self.assertFalse(self.store.delete(PROJECTS, {"id": "nope"}))
        self.assertFalse(path.exists())

        hand_edited = '{"projects": [{"id": "a", "title": "A"},]}'
        path.write_text(hand_edited, encoding="utf-8")
        self.assertFalse(self.store.delete(PROJECTS, {"id": "nope"}))
        self.assertEqual(path.read_text(encoding="utf-8"), hand_edited)

    def test_unique_index_is_enforced(self):
        self.store.upsert(POWER_STONES, {"slot": 1}, {"id": "ps-1", "slot": 1, "src": "a"})
        with self.assertRaises(ConflictError):
            self.store.upsert(POWER_STONES, {"slot": 2}, {"id": "ps-1", "slot": 2, "src": "b"})
        self.store.insert(PROJECTS, {"id": "p1"})
        with self.assertRaises(ConflictError):
            self.store.insert(PROJECTS, {"id": "p1"})

    def test_unsupported_entity_is_unavailable(self):
        self.assertFalse(self.store.supports(HIGHLIGHTS))
        with self.assertRaises(BackendUnavailable):
            self.store.find(HIGHLIGHTS)


if __name__ == "__main__":
    unittest.main()
