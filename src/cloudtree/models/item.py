"""Data model for store items."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from urllib.parse import unquote

from cloudtree.errors import InvalidResponseError
from cloudtree.util.ids import ROOT_ID, TRASH_ID
from cloudtree.util.mime import FILE_TYPE, guess_content_type, is_file, is_folder
from cloudtree.util.time import from_epoch

from .fields import BASE_CAPABILITIES, ItemCapabilities


@dataclass(frozen=True, slots=True)
class ItemVersion:
    """Independent content/metadata version tokens, compared by equality only."""

    content: bytes = b""
    metadata: bytes = b""


@dataclass(slots=True)
class Item:
    """
    A file or folder record as seen by the client.

    Notes:
        - ``parent_id`` None means root-level; see ``parent_identifier``.
        - ``content_path`` is set only for files with uploaded content.
        - Version strings are opaque; never order them.
    """

    item_id: str
    item_type: str = FILE_TYPE
    name: Optional[str] = None
    parent_id: Optional[str] = None
    owner_id: Optional[str] = None

    content_path: Optional[str] = None
    content_version: str = ""
    metadata_version: str = ""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_used_date: Optional[datetime] = None
    content_modification_date: Optional[datetime] = None

    tag_data: Optional[bytes] = None
    favorite_rank: Optional[int] = None
    file_system_flags: Optional[int] = None
    extended_attributes: Optional[dict[str, str]] = None
    type_and_creator: Optional[tuple[str, str]] = None
    trashed: bool = False

    @classmethod
    def from_dict(cls, payload: Any) -> "Item":
        """
        Decode a wire record.

        Raises:
            InvalidResponseError: if payload is not an object or its 'id' is
                missing or empty. Every other field is decoded leniently.
        """
        if not isinstance(payload, dict):
            raise InvalidResponseError(
                "Item payload must be a JSON object",
                details={"payload_type": type(payload).__name__},
            )

        item_id = payload.get("id")
        if not isinstance(item_id, str) or not item_id:
            raise InvalidResponseError("Missing or invalid 'id' in metadata")

        parent_id = _opt_str(payload.get("parentId"))
        item_type = payload.get("type")

        return cls(
            item_id=item_id,
            item_type=item_type if isinstance(item_type, str) else FILE_TYPE,
            name=_opt_str(payload.get("name")),
            parent_id=parent_id,
            owner_id=_opt_str(payload.get("GUUID")),
            content_path=_opt_str(payload.get("contentPath")),
            content_version=_opt_str(payload.get("contentVersion")) or "",
            metadata_version=_opt_str(payload.get("metadataVersion")) or "",
            created_at=from_epoch(payload.get("createdAt")),
            updated_at=from_epoch(payload.get("updatedAt")),
            last_used_date=from_epoch(payload.get("lastUsedDate")),
            content_modification_date=from_epoch(payload.get("contentModificationDate")),
            tag_data=_opt_b64(payload.get("tagData")),
            favorite_rank=_opt_int(payload.get("favoriteRank")),
            file_system_flags=_opt_int(payload.get("fileSystemFlags")),
            extended_attributes=_opt_str_map(payload.get("extendedAttributes")),
            type_and_creator=_opt_type_and_creator(payload.get("typeAndCreator")),
            trashed=payload.get("Trash") is True or parent_id == TRASH_ID,
        )

    @property
    def parent_identifier(self) -> str:
        return self.parent_id if self.parent_id else ROOT_ID

    @property
    def filename(self) -> str:
        """Percent-decoded display name; defaults to the identifier."""
        raw = self.name if self.name else self.item_id
        return unquote(raw)

    @property
    def is_folder(self) -> bool:
        return is_folder(self.item_type)

    @property
    def has_content(self) -> bool:
        return is_file(self.item_type) and bool(self.content_path)

    @property
    def version(self) -> ItemVersion:
        return ItemVersion(
            content=self.content_version.encode("utf-8"),
            metadata=self.metadata_version.encode("utf-8"),
        )

    @property
    def capabilities(self) -> ItemCapabilities:
        caps = BASE_CAPABILITIES
        if is_folder(self.item_type):
            caps |= ItemCapabilities.ADDING_SUB_ITEMS | ItemCapabilities.REPARENTING
        elif is_file(self.item_type):
            caps |= ItemCapabilities.WRITING | ItemCapabilities.REPARENTING
        return caps

    @property
    def content_type(self) -> str:
        return guess_content_type(self.filename, self.item_type)


@dataclass(frozen=True, slots=True)
class ItemTemplate:
    """What the host knows about an item before the server assigned an id."""

    name: str
    item_type: str = FILE_TYPE
    parent_id: Optional[str] = None


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _opt_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _opt_b64(value: Any) -> Optional[bytes]:
    if not isinstance(value, str):
        return None
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return None


def _opt_str_map(value: Any) -> Optional[dict[str, str]]:
    if not isinstance(value, dict):
        return None
    return {k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)}


def _opt_type_and_creator(value: Any) -> Optional[tuple[str, str]]:
    if not isinstance(value, dict):
        return None
    type_code = value.get("type")
    creator = value.get("creator")
    if not isinstance(type_code, str) or not isinstance(creator, str):
        return None
    return (type_code, creator)
