"""Stored record -> wire JSON conversion."""

from __future__ import annotations

import base64
from typing import Any

from cloudtree.util.ids import ROOT_ID, SENTINEL_NAMES, TRASH_ID
from cloudtree.util.mime import FOLDER_TYPE
from cloudtree.util.time import now_epoch

from .store import SEQUENCE_FIELD

CONTENT_STAMP_FIELD: str = "contentStamp"

_PERSISTED_FIELDS: tuple[str, ...] = (
    "id",
    "parentId",
    "GUUID",
    "name",
    "type",
    "contentPath",
    "createdAt",
    "updatedAt",
    "lastUsedDate",
    "contentModificationDate",
    "tagData",
    "favoriteRank",
    "fileSystemFlags",
    "extendedAttributes",
    "typeAndCreator",
)


def content_version(record: dict[str, Any]) -> str:
    path = record.get("contentPath")
    if not path:
        return ""
    return f"{path}:{record.get(CONTENT_STAMP_FIELD, '')}"


def metadata_version(record: dict[str, Any]) -> str:
    seq = record.get(SEQUENCE_FIELD)
    return str(seq) if seq is not None else ""


def to_wire(record: dict[str, Any]) -> dict[str, Any]:
    """Render a stored record as the item JSON clients receive."""
    out: dict[str, Any] = {"parentId": None}
    for key in _PERSISTED_FIELDS:
        value = record.get(key)
        if value is not None:
            out[key] = value

    tag_data = record.get("tagData")
    if isinstance(tag_data, (bytes, bytearray)):
        out["tagData"] = base64.b64encode(bytes(tag_data)).decode("ascii")

    out["contentVersion"] = content_version(record)
    out["metadataVersion"] = metadata_version(record)
    if record.get("parentId") == TRASH_ID or record.get("Trash") is True:
        out["Trash"] = True
    return out


def synthesize_container(identifier: str, owner_id: str) -> dict[str, Any]:
    """Virtual folder for a sentinel; never persisted."""
    now = now_epoch()
    out: dict[str, Any] = {
        "id": identifier,
        "parentId": None,
        "GUUID": owner_id,
        "name": SENTINEL_NAMES[identifier],
        "type": FOLDER_TYPE,
        "contentVersion": "",
        "metadataVersion": "",
        "createdAt": now,
        "updatedAt": now,
    }
    if identifier == TRASH_ID:
        out["Trash"] = True
    elif identifier == ROOT_ID:
        out["ROOT"] = True
    return out
