"""Server-side item operations: authorization, partial update, content."""

from __future__ import annotations

import base64
import binascii
import logging
import math
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Optional

from cloudtree.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    NotAFileError,
    NotFoundError,
    NothingToUpdateError,
)
from cloudtree.util.ids import ROOT_ID, TRASH_ID, decode_id, is_sentinel, new_item_id
from cloudtree.util.mime import ITEM_TYPES, guess_content_type, is_file, is_folder
from cloudtree.util.time import now_epoch

from .content import ContentRoot
from .records import CONTENT_STAMP_FIELD, synthesize_container, to_wire
from .store import RecordStore

logger = logging.getLogger(__name__)

# Numeric fields accepted on update; creationDate is the legacy spelling of createdAt.
_EPOCH_FIELDS: tuple[tuple[str, str], ...] = (
    ("lastUsedDate", "lastUsedDate"),
    ("creationDate", "createdAt"),
    ("createdAt", "createdAt"),
    ("contentModificationDate", "contentModificationDate"),
)
_INT_FIELDS: tuple[str, ...] = ("favoriteRank", "fileSystemFlags")


class ItemService:
    """
    Owns the record store and the content root.

    Policy:
        - Identifiers arrive as codec tokens; sentinels bypass decoding.
        - A record owned by someone else is Forbidden before anything else
          happens to it; listings only ever see the caller's records.
        - Delete never cascades; children of a deleted folder keep their
          parentId and become unreachable orphans.
    """

    def __init__(
        self,
        store: RecordStore,
        content: ContentRoot,
        *,
        page_size: int = 500,
    ) -> None:
        self._store = store
        self._content = content
        self._page_size = page_size

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def content(self) -> ContentRoot:
        return self._content

    # ----------------------------
    # Reads
    # ----------------------------
    def list_children(
        self,
        owner_id: str,
        parent_token: Optional[str] = None,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[list[dict[str, Any]], Optional[int]]:
        """Return one page of children and the next offset (None when done)."""
        parent_id = self._parent_from_token(parent_token)
        if offset < 0:
            raise InvalidArgumentError("offset must be >= 0", details={"offset": offset})
        size = self._page_size if limit is None else limit
        if size <= 0:
            raise InvalidArgumentError("limit must be > 0", details={"limit": limit})

        records = self._store.find({"parentId": parent_id, "GUUID": owner_id})
        page = records[offset:offset + size]
        next_offset = offset + size if offset + size < len(records) else None
        return [to_wire(r) for r in page], next_offset

    def get_item(self, owner_id: str, token: str) -> dict[str, Any]:
        item_id = decode_id(token)
        if is_sentinel(item_id):
            return synthesize_container(item_id, owner_id)
        return to_wire(self._owned(owner_id, item_id))

    def content_for(self, owner_id: str, token: str) -> tuple[Path, str, str]:
        """
        Locate the blob of a file.

        Returns:
            (absolute path, download filename, media type)
        """
        item_id = decode_id(token)
        if is_sentinel(item_id):
            raise NotAFileError("Not found or not a file", details={"item_id": item_id})

        record = self._owned(owner_id, item_id)
        if not is_file(record.get("type")) or not record.get("contentPath"):
            raise NotAFileError("Not found or not a file", details={"item_id": item_id})

        path = self._content.open_blob(record["contentPath"])
        name = record.get("name") or item_id
        return path, name, guess_content_type(name)

    def changes_since(
        self,
        owner_id: str,
        since: str,
        *,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        try:
            since_seq = int(since)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError("Invalid sync anchor", details={"anchor": since}, cause=exc) from exc
        if since_seq < 0:
            raise InvalidArgumentError("Invalid sync anchor", details={"anchor": since})
        if limit is not None and limit <= 0:
            raise InvalidArgumentError("limit must be > 0", details={"limit": limit})

        changes = self._store.changes_since(owner_id, since_seq, limit=limit)
        return {
            "updated": [to_wire(r) for r in changes.records],
            "deleted": changes.deleted_ids,
            "anchor": str(changes.anchor),
            "moreComing": changes.more_coming,
        }

    def current_anchor(self) -> str:
        return str(self._store.current_sequence())

    # ----------------------------
    # Writes
    # ----------------------------
    def create_item(
        self,
        owner_id: str,
        name: str,
        item_type: str,
        parent_token: Optional[str] = None,
    ) -> dict[str, Any]:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("name must be a non-empty string")
        if item_type not in ITEM_TYPES:
            raise InvalidArgumentError("type must be 'file' or 'folder'", details={"type": item_type})

        parent_id = self._parent_from_token(parent_token)
        self._check_parent(owner_id, parent_id)

        now = now_epoch()
        record = self._store.insert_one(
            {
                "id": new_item_id(),
                "parentId": parent_id,
                "GUUID": owner_id,
                "name": name,
                "type": item_type,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        logger.info("Created %s %s for %s", item_type, record["id"], owner_id)
        return to_wire(record)

    def update_item(self, owner_id: str, token: str, body: Any) -> dict[str, Any]:
        """
        Apply the allow-listed fields present in ``body``.

        Fields that are absent (or null, except parentId) are left untouched.
        """
        item_id = decode_id(token)
        changes = _parse_changes(body)
        if not changes:
            raise NothingToUpdateError("Nothing to update", details={"item_id": item_id})
        if is_sentinel(item_id):
            raise InvalidArgumentError("Containers are read-only", details={"item_id": item_id})

        self._owned(owner_id, item_id)
        if "parentId" in changes:
            self._check_parent(owner_id, changes["parentId"], moving_id=item_id)

        changes["updatedAt"] = now_epoch()
        updated = self._store.update_one({"id": item_id, "GUUID": owner_id}, changes)
        if updated is None:
            raise NotFoundError("Not found", details={"item_id": item_id})
        logger.info("Updated %s (%s)", item_id, ", ".join(sorted(changes)))
        return to_wire(updated)

    def delete_item(self, owner_id: str, token: str) -> None:
        item_id = decode_id(token)
        if is_sentinel(item_id):
            raise InvalidArgumentError("Containers cannot be deleted", details={"item_id": item_id})

        record = self._owned(owner_id, item_id)
        if not self._store.delete_one({"id": item_id, "GUUID": owner_id}):
            raise NotFoundError("Not found", details={"item_id": item_id})

        if is_file(record.get("type")) and record.get("contentPath"):
            self._content.remove(record["contentPath"])
        logger.info("Deleted %s", item_id)

    def upload_content(
        self,
        owner_id: str,
        token: str,
        filename: Optional[str],
        stream: BinaryIO,
    ) -> dict[str, Any]:
        item_id = decode_id(token)
        if is_sentinel(item_id):
            raise NotAFileError("Not found or not a file", details={"item_id": item_id})

        record = self._owned(owner_id, item_id)
        if not is_file(record.get("type")):
            raise NotAFileError("Not found or not a file", details={"item_id": item_id})

        relative = self._content.store(item_id, filename, stream)
        updated = self._store.update_one(
            {"id": item_id, "GUUID": owner_id},
            {
                "contentPath": relative,
                CONTENT_STAMP_FIELD: uuid.uuid4().hex[:16],
                "updatedAt": now_epoch(),
            },
        )
        if updated is None:
            # Deleted while uploading.
            self._content.remove(relative)
            raise NotFoundError("Not found", details={"item_id": item_id})

        previous = record.get("contentPath")
        if previous and previous != relative:
            self._content.remove(previous)
        logger.info("Uploaded content for %s", item_id)
        return to_wire(updated)

    # ----------------------------
    # Internals
    # ----------------------------
    def _owned(self, owner_id: str, item_id: str) -> dict[str, Any]:
        record = self._store.find_one({"id": item_id})
        if record is None:
            raise NotFoundError("Not found", details={"item_id": item_id})
        if record.get("GUUID") != owner_id:
            logger.warning("Owner mismatch on %s", item_id)
            raise ForbiddenError("Forbidden", details={"item_id": item_id})
        return record

    def _parent_from_token(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        parent_id = decode_id(token)
        return None if parent_id == ROOT_ID else parent_id

    def _check_parent(
        self,
        owner_id: str,
        parent_id: Optional[str],
        *,
        moving_id: Optional[str] = None,
    ) -> None:
        """
        A parent must be root, the trash, or an owned folder, and must not be
        the moving item or one of its descendants.
        """
        if parent_id is None or parent_id == TRASH_ID:
            return

        parent = self._store.find_one({"id": parent_id, "GUUID": owner_id})
        if parent is None:
            raise InvalidArgumentError("Parent does not exist", details={"parent_id": parent_id})
        if not is_folder(parent.get("type")):
            raise InvalidArgumentError("Parent is not a folder", details={"parent_id": parent_id})

        if moving_id is None:
            return

        seen: set[str] = set()
        current: Optional[str] = parent_id
        while current and not is_sentinel(current) and current not in seen:
            if current == moving_id:
                raise ConflictError(
                    "Move would make the item its own ancestor",
                    details={"item_id": moving_id, "parent_id": parent_id},
                )
            seen.add(current)
            ancestor = self._store.find_one({"id": current})
            current = ancestor.get("parentId") if ancestor else None


def _parse_changes(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise InvalidArgumentError("Update body must be a JSON object")

    changes: dict[str, Any] = {}

    name = body.get("name")
    if name is not None:
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("name must be a non-empty string")
        changes["name"] = name

    # parentId is the one field where an explicit null means "move to root".
    if "parentId" in body:
        raw_parent = body["parentId"]
        if raw_parent is None:
            changes["parentId"] = None
        elif isinstance(raw_parent, str):
            parent_id = decode_id(raw_parent) if raw_parent else ROOT_ID
            changes["parentId"] = None if parent_id == ROOT_ID else parent_id
        else:
            raise InvalidArgumentError("parentId must be a string or null")

    for wire_key, stored_key in _EPOCH_FIELDS:
        value = body.get(wire_key)
        if value is not None:
            changes[stored_key] = _as_int(wire_key, value)

    tag_data = body.get("tagData")
    if tag_data is not None:
        if not isinstance(tag_data, str):
            raise InvalidArgumentError("tagData must be base64 text")
        try:
            changes["tagData"] = base64.b64decode(tag_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidArgumentError("tagData must be base64 text", cause=exc) from exc

    for key in _INT_FIELDS:
        value = body.get(key)
        if value is not None:
            changes[key] = _as_int(key, value)

    attrs = body.get("extendedAttributes")
    if attrs:
        if not isinstance(attrs, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in attrs.items()
        ):
            raise InvalidArgumentError("extendedAttributes must map strings to strings")
        changes["extendedAttributes"] = dict(attrs)

    tc = body.get("typeAndCreator")
    if tc:
        if (
            not isinstance(tc, dict)
            or not isinstance(tc.get("type"), str)
            or not isinstance(tc.get("creator"), str)
        ):
            raise InvalidArgumentError("typeAndCreator must carry 'type' and 'creator' strings")
        changes["typeAndCreator"] = {"type": tc["type"], "creator": tc["creator"]}

    return changes


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"{key} must be a number", details={key: value})
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidArgumentError(f"{key} must be a finite number", details={key: str(value)})
    return int(value)
