"""Sync exports for cloudtree."""

from __future__ import annotations

from .enumerator import SyncEnumerator

__all__ = ["SyncEnumerator"]
