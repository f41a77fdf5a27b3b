import unittest
from datetime import datetime, timezone

from cloudtree.client import build_field_diff
from cloudtree.errors import InvalidArgumentError
from cloudtree.models import Item, ItemFields
from cloudtree.util.ids import encode_id


class TestBuildFieldDiff(unittest.TestCase):
    def setUp(self) -> None:
        self.dt = datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        self.item = Item(
            item_id="F1",
            name="b.txt",
            parent_id="P1",
            created_at=self.dt,
            last_used_date=self.dt,
            tag_data=b"\x00\x01",
            favorite_rank=2,
            extended_attributes={"k": "v"},
            type_and_creator=("TEXT", "ttxt"),
        )

    def test_rename_emits_only_name(self) -> None:
        self.assertEqual(build_field_diff(ItemFields.FILENAME, self.item), {"name": "b.txt"})

    def test_keys_are_changed_and_present_fields(self) -> None:
        fields = (
            ItemFields.FILENAME
            | ItemFields.PARENT
            | ItemFields.LAST_USED_DATE
            | ItemFields.CREATION_DATE
            | ItemFields.CONTENT_MODIFICATION_DATE
            | ItemFields.FILE_SYSTEM_FLAGS
            | ItemFields.TAG_DATA
        )
        diff = build_field_diff(fields, self.item)

        # contentModificationDate and fileSystemFlags are absent on the item.
        self.assertEqual(
            set(diff),
            {"name", "parentId", "lastUsedDate", "createdAt", "tagData"},
        )
        self.assertEqual(diff["parentId"], encode_id("P1"))
        self.assertEqual(diff["createdAt"], 1735689600.0)
        self.assertEqual(diff["tagData"], "AAE=")

    def test_structured_fields(self) -> None:
        diff = build_field_diff(
            ItemFields.EXTENDED_ATTRIBUTES | ItemFields.TYPE_AND_CREATOR | ItemFields.FAVORITE_RANK,
            self.item,
        )
        self.assertEqual(
            diff,
            {
                "extendedAttributes": {"k": "v"},
                "typeAndCreator": {"type": "TEXT", "creator": "ttxt"},
                "favoriteRank": 2,
            },
        )

    def test_root_parent_is_sent_as_sentinel(self) -> None:
        item = Item(item_id="F1", parent_id=None)
        self.assertEqual(build_field_diff(ItemFields.PARENT, item), {"parentId": "root"})

    def test_contents_and_none_yield_empty_diff(self) -> None:
        self.assertEqual(build_field_diff(ItemFields.CONTENTS, self.item), {})
        self.assertEqual(build_field_diff(ItemFields.NONE, self.item), {})

    def test_naive_date_is_invalid_argument(self) -> None:
        item = Item(item_id="F1", last_used_date=datetime(2025, 1, 1))
        with self.assertRaises(InvalidArgumentError) as ctx:
            build_field_diff(ItemFields.LAST_USED_DATE, item)
        self.assertIsInstance(ctx.exception.cause, ValueError)


if __name__ == "__main__":
    unittest.main()
