import io
import tempfile
import unittest
from pathlib import Path

from cloudtree.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidIdentifierError,
    NotAFileError,
    NotFoundError,
    NothingToUpdateError,
)
from cloudtree.server.content import ContentRoot
from cloudtree.server.service import ItemService
from cloudtree.server.store import RecordStore
from cloudtree.util.ids import encode_id


class ServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.content = ContentRoot(Path(self._tmp.name))
        self.service = ItemService(RecordStore(), self.content, page_size=2)

    def create(self, name: str, item_type: str = "file", parent: dict | None = None, owner: str = "o1") -> dict:
        parent_token = encode_id(parent["id"]) if parent else None
        return self.service.create_item(owner, name, item_type, parent_token)

    def tok(self, record: dict) -> str:
        return encode_id(record["id"])


class TestItemServiceReads(ServiceTestCase):
    def test_create_sets_identity_and_timestamps(self) -> None:
        docs = self.create("Docs", "folder")
        self.assertTrue(docs["id"])
        self.assertEqual(docs["type"], "folder")
        self.assertIsNone(docs["parentId"])
        self.assertEqual(docs["GUUID"], "o1")
        self.assertEqual(docs["createdAt"], docs["updatedAt"])
        self.assertEqual(docs["contentVersion"], "")
        self.assertTrue(docs["metadataVersion"])
        self.assertNotIn("changeSeq", docs)

    def test_list_children_by_parent_and_owner(self) -> None:
        docs = self.create("Docs", "folder")
        a = self.create("a.txt", parent=docs)
        self.create("other", owner="o2")

        root_items, _ = self.service.list_children("o1", None)
        self.assertEqual([r["id"] for r in root_items], [docs["id"]])
        in_docs, _ = self.service.list_children("o1", self.tok(docs))
        self.assertEqual([r["id"] for r in in_docs], [a["id"]])
        self.assertEqual(self.service.list_children("o1", "root")[0], root_items)

    def test_list_children_pages(self) -> None:
        for name in ("a", "b", "c"):
            self.create(name)
        first, next_offset = self.service.list_children("o1")
        self.assertEqual(len(first), 2)
        self.assertEqual(next_offset, 2)
        rest, next_offset = self.service.list_children("o1", offset=2)
        self.assertEqual(len(rest), 1)
        self.assertIsNone(next_offset)

        with self.assertRaises(InvalidArgumentError):
            self.service.list_children("o1", limit=0)

    def test_trash_listing(self) -> None:
        a = self.create("a.txt")
        self.service.update_item("o1", self.tok(a), {"parentId": "trash"})
        trashed, _ = self.service.list_children("o1", "trash")
        self.assertEqual([r["id"] for r in trashed], [a["id"]])
        self.assertTrue(trashed[0]["Trash"])

    def test_sentinels_are_synthesized(self) -> None:
        root = self.service.get_item("o1", "root")
        self.assertEqual((root["id"], root["name"], root["type"]), ("root", "Root", "folder"))
        trash = self.service.get_item("o1", "trash")
        self.assertEqual(trash["name"], "Recently Deleted")
        self.assertTrue(trash["Trash"])

    def test_get_item_errors(self) -> None:
        a = self.create("a.txt", owner="o2")
        with self.assertRaises(ForbiddenError):
            self.service.get_item("o1", self.tok(a))
        with self.assertRaises(NotFoundError):
            self.service.get_item("o1", encode_id("missing"))
        with self.assertRaises(InvalidIdentifierError):
            self.service.get_item("o1", "not+a+token")


class TestItemServiceWrites(ServiceTestCase):
    def test_create_validates_parent(self) -> None:
        a = self.create("a.txt")
        with self.assertRaises(InvalidArgumentError):
            self.create("x", parent=a)
        with self.assertRaises(InvalidArgumentError):
            self.service.create_item("o1", "x", "file", encode_id("missing"))
        foreign = self.create("F", "folder", owner="o2")
        with self.assertRaises(InvalidArgumentError):
            self.create("x", parent=foreign)
        with self.assertRaises(InvalidArgumentError):
            self.service.create_item("o1", "", "file")

    def test_update_applies_allow_listed_fields(self) -> None:
        a = self.create("a.txt")
        updated = self.service.update_item(
            "o1",
            self.tok(a),
            {
                "name": "b.txt",
                "favoriteRank": 5,
                "tagData": "AAE=",
                "creationDate": 100.7,
                "unknownKey": "ignored",
                "GUUID": "o2",
            },
        )
        self.assertEqual(updated["name"], "b.txt")
        self.assertEqual(updated["favoriteRank"], 5)
        self.assertEqual(updated["tagData"], "AAE=")
        self.assertEqual(updated["createdAt"], 100)
        self.assertEqual(updated["GUUID"], "o1")
        self.assertNotIn("unknownKey", updated)
        self.assertNotEqual(updated["metadataVersion"], a["metadataVersion"])

    def test_update_rejects_bad_values(self) -> None:
        a = self.create("a.txt")
        for body in (
            {"name": 5},
            {"favoriteRank": "high"},
            {"favoriteRank": float("inf")},
            {"lastUsedDate": float("-inf")},
            {"creationDate": float("nan")},
            {"tagData": "!!"},
            {"typeAndCreator": {"type": "T"}},
        ):
            with self.assertRaises(InvalidArgumentError):
                self.service.update_item("o1", self.tok(a), body)

    def test_empty_update_fails_for_any_caller(self) -> None:
        a = self.create("a.txt")
        for owner in ("o1", "o2"):
            for body in ({}, {"unknown": 1}, {"name": None}):
                with self.assertRaises(NothingToUpdateError):
                    self.service.update_item(owner, self.tok(a), body)

    def test_update_foreign_record_is_forbidden_and_unchanged(self) -> None:
        a = self.create("a.txt", owner="o2")
        with self.assertRaises(ForbiddenError):
            self.service.update_item("o1", self.tok(a), {"name": "stolen"})
        self.assertEqual(self.service.get_item("o2", self.tok(a))["name"], "a.txt")

    def test_move_and_cycle_detection(self) -> None:
        outer = self.create("outer", "folder")
        inner = self.create("inner", "folder", parent=outer)

        with self.assertRaises(ConflictError):
            self.service.update_item("o1", self.tok(outer), {"parentId": self.tok(inner)})
        with self.assertRaises(ConflictError):
            self.service.update_item("o1", self.tok(outer), {"parentId": self.tok(outer)})

        moved = self.service.update_item("o1", self.tok(inner), {"parentId": None})
        self.assertIsNone(moved["parentId"])
        moved = self.service.update_item("o1", self.tok(inner), {"parentId": self.tok(outer)})
        self.assertEqual(moved["parentId"], outer["id"])
        moved = self.service.update_item("o1", self.tok(inner), {"parentId": "root"})
        self.assertIsNone(moved["parentId"])

    def test_containers_are_read_only(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.service.update_item("o1", "root", {"name": "x"})
        with self.assertRaises(InvalidArgumentError):
            self.service.delete_item("o1", "trash")

    def test_delete_does_not_cascade(self) -> None:
        docs = self.create("Docs", "folder")
        a = self.create("a.txt", parent=docs)

        self.service.delete_item("o1", self.tok(docs))

        with self.assertRaises(NotFoundError):
            self.service.get_item("o1", self.tok(docs))
        orphans, _ = self.service.list_children("o1", self.tok(docs))
        self.assertEqual([r["id"] for r in orphans], [a["id"]])
        self.assertEqual(self.service.list_children("o1")[0], [])

    def test_delete_foreign_is_forbidden(self) -> None:
        a = self.create("a.txt", owner="o2")
        with self.assertRaises(ForbiddenError):
            self.service.delete_item("o1", self.tok(a))
        self.assertEqual(self.service.get_item("o2", self.tok(a))["id"], a["id"])


class TestItemServiceContent(ServiceTestCase):
    def test_upload_then_content_for(self) -> None:
        a = self.create("a.txt")
        uploaded = self.service.upload_content("o1", self.tok(a), "local.txt", io.BytesIO(b"hello"))

        self.assertEqual(uploaded["contentPath"], f"{a['id']}_local.txt")
        self.assertTrue(uploaded["contentVersion"].startswith(uploaded["contentPath"] + ":"))
        path, filename, media_type = self.service.content_for("o1", self.tok(a))
        self.assertEqual(path.read_bytes(), b"hello")
        self.assertEqual(filename, "a.txt")
        self.assertEqual(media_type, "text/plain")

    def test_reupload_changes_content_version_and_drops_old_blob(self) -> None:
        a = self.create("a.txt")
        first = self.service.upload_content("o1", self.tok(a), "one.txt", io.BytesIO(b"1"))
        second = self.service.upload_content("o1", self.tok(a), "two.txt", io.BytesIO(b"2"))
        self.assertNotEqual(first["contentVersion"], second["contentVersion"])
        self.assertFalse((self.content.root / first["contentPath"]).exists())

        third = self.service.upload_content("o1", self.tok(a), "two.txt", io.BytesIO(b"3"))
        self.assertNotEqual(second["contentVersion"], third["contentVersion"])
        self.assertTrue((self.content.root / third["contentPath"]).exists())

    def test_content_for_folder_or_empty_file(self) -> None:
        docs = self.create("Docs", "folder")
        a = self.create("a.txt")
        for record in (docs, a):
            with self.assertRaises(NotAFileError):
                self.service.content_for("o1", self.tok(record))
        with self.assertRaises(NotAFileError):
            self.service.content_for("o1", "root")

    def test_upload_to_folder_is_rejected(self) -> None:
        docs = self.create("Docs", "folder")
        with self.assertRaises(NotAFileError):
            self.service.upload_content("o1", self.tok(docs), "a.txt", io.BytesIO(b"x"))
        self.assertEqual(list(self.content.root.iterdir()), [])

    def test_delete_removes_blob(self) -> None:
        a = self.create("a.txt")
        uploaded = self.service.upload_content("o1", self.tok(a), "a.txt", io.BytesIO(b"x"))
        self.service.delete_item("o1", self.tok(a))
        self.assertFalse((self.content.root / uploaded["contentPath"]).exists())

    def test_delete_survives_missing_blob(self) -> None:
        a = self.create("a.txt")
        uploaded = self.service.upload_content("o1", self.tok(a), "a.txt", io.BytesIO(b"x"))
        (self.content.root / uploaded["contentPath"]).unlink()
        self.service.delete_item("o1", self.tok(a))
        with self.assertRaises(NotFoundError):
            self.service.get_item("o1", self.tok(a))


class TestItemServiceChanges(ServiceTestCase):
    def test_changes_since_anchor(self) -> None:
        anchor = self.service.current_anchor()
        a = self.create("a.txt")
        b = self.create("b.txt")
        self.service.delete_item("o1", self.tok(b))

        changes = self.service.changes_since("o1", anchor)
        self.assertEqual([r["id"] for r in changes["updated"]], [a["id"]])
        self.assertEqual(changes["deleted"], [b["id"]])
        self.assertEqual(changes["anchor"], self.service.current_anchor())
        self.assertFalse(changes["moreComing"])

        again = self.service.changes_since("o1", changes["anchor"])
        self.assertEqual((again["updated"], again["deleted"]), ([], []))

    def test_invalid_anchor(self) -> None:
        for bad in ("abc", "-1", ""):
            with self.assertRaises(InvalidArgumentError):
                self.service.changes_since("o1", bad)


if __name__ == "__main__":
    unittest.main()
