"""In-process, key-filtered record store with change sequencing."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from cloudtree.errors import ConflictError

SEQUENCE_FIELD: str = "changeSeq"


@dataclass(frozen=True)
class _Tombstone:
    item_id: str
    owner_id: Optional[str]
    seq: int


@dataclass(frozen=True)
class StoreChanges:
    records: list[dict[str, Any]]
    deleted_ids: list[str]
    anchor: int
    more_coming: bool


def _matches(doc: Mapping[str, Any], flt: Mapping[str, Any]) -> bool:
    return all(doc.get(key) == value for key, value in flt.items())


class RecordStore:
    """
    Document store keyed by ``id`` and filtered by field equality.

    Notes:
        - Single-document operations are atomic; nothing spans documents.
        - Every write stamps the document with the next store-wide sequence
          number under the same lock, so change enumeration by sequence never
          misses a committed write.
        - Documents handed out are deep copies.
    """

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        self._tombstones: list[_Tombstone] = []
        self._seq = 0
        self._lock = threading.RLock()

    def find(self, flt: Mapping[str, Any]) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(d) for d in self._docs.values() if _matches(d, flt)]

    def find_one(self, flt: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        with self._lock:
            doc = self._first(flt)
            return copy.deepcopy(doc) if doc is not None else None

    def insert_one(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        item_id = doc.get("id")
        if not isinstance(item_id, str) or not item_id:
            raise ValueError("document needs a non-empty string 'id'")

        with self._lock:
            if item_id in self._docs:
                raise ConflictError("Duplicate id", details={"item_id": item_id})
            stored = copy.deepcopy(dict(doc))
            stored[SEQUENCE_FIELD] = self._next_seq()
            self._docs[item_id] = stored
            return copy.deepcopy(stored)

    def update_one(
        self,
        flt: Mapping[str, Any],
        changes: Mapping[str, Any],
    ) -> Optional[dict[str, Any]]:
        """Merge ``changes`` into the first match; returns the merged copy."""
        with self._lock:
            doc = self._first(flt)
            if doc is None:
                return None
            doc.update(copy.deepcopy(dict(changes)))
            doc[SEQUENCE_FIELD] = self._next_seq()
            return copy.deepcopy(doc)

    def delete_one(self, flt: Mapping[str, Any]) -> bool:
        with self._lock:
            doc = self._first(flt)
            if doc is None:
                return False
            del self._docs[doc["id"]]
            self._tombstones.append(
                _Tombstone(item_id=doc["id"], owner_id=doc.get("GUUID"), seq=self._next_seq())
            )
            return True

    def current_sequence(self) -> int:
        with self._lock:
            return self._seq

    def changes_since(
        self,
        owner_id: str,
        since: int,
        *,
        limit: Optional[int] = None,
    ) -> StoreChanges:
        """
        Live documents and tombstones of ``owner_id`` written after ``since``.

        Events are ordered by sequence. With a limit, the anchor is the last
        returned sequence and ``more_coming`` tells whether events remain.
        """
        with self._lock:
            events: list[tuple[int, Optional[dict[str, Any]], Optional[str]]] = []
            for doc in self._docs.values():
                if doc.get("GUUID") == owner_id and doc[SEQUENCE_FIELD] > since:
                    events.append((doc[SEQUENCE_FIELD], copy.deepcopy(doc), None))
            for stone in self._tombstones:
                if stone.owner_id == owner_id and stone.seq > since:
                    events.append((stone.seq, None, stone.item_id))
            current = self._seq

        events.sort(key=lambda e: e[0])
        more = limit is not None and len(events) > limit
        if limit is not None:
            events = events[:limit]

        if not events:
            anchor = since
        elif more:
            anchor = events[-1][0]
        else:
            anchor = max(current, since)

        records = [doc for _, doc, _ in events if doc is not None]
        deleted = [item_id for _, _, item_id in events if item_id is not None]
        return StoreChanges(records=records, deleted_ids=deleted, anchor=anchor, more_coming=more)

    def _first(self, flt: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        if "id" in flt:
            doc = self._docs.get(flt["id"])
            return doc if doc is not None and _matches(doc, flt) else None
        for doc in self._docs.values():
            if _matches(doc, flt):
                return doc
        return None

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq
