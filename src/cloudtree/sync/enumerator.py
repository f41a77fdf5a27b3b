"""Container enumeration and change-anchor protocol."""

from __future__ import annotations

import logging
from typing import Optional

from cloudtree.client import RemoteStoreClient
from cloudtree.models import ChangeSet, Page

logger = logging.getLogger(__name__)


class SyncEnumerator:
    """
    Enumerates one container and the owner-wide changes after an anchor.

    Notes:
        - The root sentinel lists root-level items; the trash sentinel lists
          items whose parent is the trash container.
        - Anchors are opaque strings issued by the server. Changes are not
          filtered to this container; the host decides what is relevant.
    """

    def __init__(self, client: RemoteStoreClient, container_id: str) -> None:
        self._client = client
        self._container_id = container_id

    @property
    def container_id(self) -> str:
        return self._container_id

    async def enumerate_items(self, page_token: Optional[str] = None) -> Page:
        page = await self._client.list_children(self._container_id, page_token=page_token)
        logger.debug(
            "Enumerated %d item(s) of %s (more=%s)",
            len(page.items),
            self._container_id,
            page.next_page_token is not None,
        )
        return page

    async def enumerate_changes(self, anchor: str) -> ChangeSet:
        changes = await self._client.changes_since(anchor)
        logger.debug(
            "Changes since %s: %d updated, %d deleted, anchor=%s",
            anchor,
            len(changes.updated),
            len(changes.deleted_ids),
            changes.anchor,
        )
        return changes

    async def current_sync_anchor(self) -> str:
        return await self._client.current_anchor()
