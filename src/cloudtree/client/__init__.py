"""Client exports for cloudtree."""

from __future__ import annotations

from .diff import build_field_diff
from .store_client import RemoteStoreClient

__all__ = ["RemoteStoreClient", "build_field_diff"]
