"""Result models for listing, sync and two-step replication operations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .item import Item


@dataclass(slots=True)
class Page:
    """One page of a container listing. ``next_page_token`` None means done."""

    items: list[Item]
    next_page_token: Optional[str] = None


@dataclass(slots=True)
class ChangeSet:
    """Changes after an anchor, plus the anchor to resume from."""

    updated: list[Item]
    deleted_ids: list[str]
    anchor: str
    more_coming: bool = False


@dataclass(slots=True)
class FetchResult:
    """
    Outcome of fetch-contents.

    The downloaded file is kept even when the follow-up metadata fetch fails;
    in that case ``item`` is None and ``metadata_error`` holds the failure.
    """

    path: Path
    item: Optional[Item] = None
    metadata_error: Optional[Exception] = None

    @property
    def complete(self) -> bool:
        return self.item is not None and self.metadata_error is None


@dataclass(slots=True)
class WriteResult:
    """
    Outcome of create/modify.

    Metadata and content travel in separate round-trips with no atomicity:
    ``item`` is the server's record after the metadata step, and
    ``upload_error`` is set when the content step failed afterwards.
    """

    item: Item
    upload_error: Optional[Exception] = None
    uploaded: bool = False

    @property
    def complete(self) -> bool:
        return self.upload_error is None
