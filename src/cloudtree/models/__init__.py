"""Public model exports for cloudtree."""

from __future__ import annotations

from .fields import BASE_CAPABILITIES, ItemCapabilities, ItemFields
from .item import Item, ItemTemplate, ItemVersion
from .results import ChangeSet, FetchResult, Page, WriteResult

__all__ = [
    "Item",
    "ItemTemplate",
    "ItemVersion",
    "ItemFields",
    "ItemCapabilities",
    "BASE_CAPABILITIES",
    "Page",
    "ChangeSet",
    "FetchResult",
    "WriteResult",
]
