"""Bridge exports for cloudtree."""

from __future__ import annotations

from .replication import ReplicationBridge

__all__ = ["ReplicationBridge"]
