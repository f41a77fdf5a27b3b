"""Server exports for cloudtree."""

from __future__ import annotations

from .app import configure_logging, create_app
from .auth import Principal, TokenRegistry, make_principal_dependency
from .content import ContentRoot, PathEscapeError
from .service import ItemService
from .store import RecordStore, StoreChanges

__all__ = [
    "ContentRoot",
    "ItemService",
    "PathEscapeError",
    "Principal",
    "RecordStore",
    "StoreChanges",
    "TokenRegistry",
    "configure_logging",
    "create_app",
    "make_principal_dependency",
]
