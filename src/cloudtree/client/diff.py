"""Partial-update body construction."""

from __future__ import annotations

import base64
from typing import Any, Callable, Optional

from cloudtree.errors import InvalidArgumentError
from cloudtree.models import Item, ItemFields
from cloudtree.util.ids import encode_id
from cloudtree.util.time import to_epoch


def _epoch(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return to_epoch(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError("Dates must be timezone-aware datetimes", cause=exc) from exc


def _b64(value: Optional[bytes]) -> Optional[str]:
    return base64.b64encode(value).decode("ascii") if value is not None else None


def _type_and_creator(value: Optional[tuple[str, str]]) -> Optional[dict[str, str]]:
    if value is None:
        return None
    type_code, creator = value
    return {"type": type_code, "creator": creator}


# field -> (wire key, item -> wire value or None when absent)
_DIFF_FIELDS: tuple[tuple[ItemFields, str, Callable[[Item], Any]], ...] = (
    (ItemFields.FILENAME, "name", lambda i: i.name),
    (ItemFields.PARENT, "parentId", lambda i: encode_id(i.parent_identifier)),
    (ItemFields.LAST_USED_DATE, "lastUsedDate", lambda i: _epoch(i.last_used_date)),
    (ItemFields.CREATION_DATE, "createdAt", lambda i: _epoch(i.created_at)),
    (
        ItemFields.CONTENT_MODIFICATION_DATE,
        "contentModificationDate",
        lambda i: _epoch(i.content_modification_date),
    ),
    (ItemFields.TAG_DATA, "tagData", lambda i: _b64(i.tag_data)),
    (ItemFields.FAVORITE_RANK, "favoriteRank", lambda i: i.favorite_rank),
    (ItemFields.FILE_SYSTEM_FLAGS, "fileSystemFlags", lambda i: i.file_system_flags),
    (
        ItemFields.EXTENDED_ATTRIBUTES,
        "extendedAttributes",
        lambda i: dict(i.extended_attributes) if i.extended_attributes is not None else None,
    ),
    (
        ItemFields.TYPE_AND_CREATOR,
        "typeAndCreator",
        lambda i: _type_and_creator(i.type_and_creator),
    ),
)


def build_field_diff(changed_fields: ItemFields, item: Item) -> dict[str, Any]:
    """
    Build the update body for ``changed_fields`` from the full item view.

    Exactly one key per changed field whose value is present. Absent values
    are dropped rather than sent as clears; CONTENTS never appears here (it
    travels as a separate upload).
    """
    diff: dict[str, Any] = {}
    for flag, key, getter in _DIFF_FIELDS:
        if not (changed_fields & flag):
            continue
        value = getter(item)
        if value is None:
            continue
        diff[key] = value
    return diff
