"""ReplicationBridge: maps host item-lifecycle intents onto store client calls."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from cloudtree.client import RemoteStoreClient, build_field_diff
from cloudtree.errors import (
    CloudTreeError,
    InvalidArgumentError,
    NotAFileError,
    NothingToUpdateError,
)
from cloudtree.models import FetchResult, Item, ItemFields, ItemTemplate, WriteResult
from cloudtree.sync import SyncEnumerator
from cloudtree.util.ids import SENTINEL_NAMES, TRASH_ID, encode_id, is_sentinel
from cloudtree.util.mime import FOLDER_TYPE, is_folder

logger = logging.getLogger(__name__)

LocalPath = Union[str, Path]


class ReplicationBridge:
    """
    High-level host adapter.

    Policy:
        - Sentinel identifiers are answered locally and never sent upstream.
        - Create/modify with contents are two independent round-trips. A
          failed upload does not roll back the metadata step; it is reported
          on the returned WriteResult instead of raised.
        - Every other failure propagates unchanged.
    """

    def __init__(self, client: RemoteStoreClient) -> None:
        self._client = client

    @property
    def client(self) -> RemoteStoreClient:
        return self._client

    async def item(self, identifier: str) -> Item:
        """Resolve an identifier to its metadata."""
        if is_sentinel(identifier):
            return self._synthesize(identifier)
        return await self._client.get_metadata(identifier)

    async def fetch_contents(
        self,
        identifier: str,
        destination_dir: LocalPath,
        *,
        overwrite: bool = False,
    ) -> FetchResult:
        """
        Download the blob, then fetch metadata independently.

        Raises:
            CloudTreeError: if the download itself fails. A metadata failure
                after a successful download is returned, not raised.
        """
        if is_sentinel(identifier):
            raise NotAFileError("Containers have no content", details={"item_id": identifier})

        dest = Path(destination_dir) / encode_id(identifier)
        path = await self._client.download_content(identifier, dest, overwrite=overwrite)

        try:
            item = await self._client.get_metadata(identifier)
        except CloudTreeError as exc:
            logger.warning(
                "Downloaded %s but metadata fetch failed: %s",
                identifier,
                exc.__class__.__name__,
            )
            return FetchResult(path=path, item=None, metadata_error=exc)

        return FetchResult(path=path, item=item)

    async def create_item(
        self,
        template: ItemTemplate,
        *,
        contents: Optional[LocalPath] = None,
    ) -> WriteResult:
        """
        Create the record, then upload ``contents`` if given.

        Not transactional: when the upload fails the created record stays and
        WriteResult.upload_error carries the failure.
        """
        if contents is not None and is_folder(template.item_type):
            raise InvalidArgumentError("Folders cannot hold content", details={"name": template.name})

        created = await self._client.create_item(
            template.parent_id,
            template.name,
            template.item_type,
        )
        logger.info("Created %s %s", template.item_type, created.item_id)

        if contents is None:
            return WriteResult(item=created)
        return await self._upload_after(created, contents)

    async def modify_item(
        self,
        item: Item,
        changed_fields: ItemFields,
        *,
        contents: Optional[LocalPath] = None,
    ) -> WriteResult:
        """
        Send the changed-field diff, then replace content if given.

        Raises:
            NothingToUpdateError: if neither a field nor contents changed.
        """
        if is_sentinel(item.item_id):
            raise InvalidArgumentError("Containers cannot be modified", details={"item_id": item.item_id})

        diff = build_field_diff(changed_fields, item)
        if not diff and contents is None:
            raise NothingToUpdateError("Nothing to update", details={"item_id": item.item_id})

        current = item
        if diff:
            current = await self._client.update_item_fields(item.item_id, diff)
            logger.info("Updated %s (%s)", item.item_id, ", ".join(sorted(diff)))

        if contents is None:
            return WriteResult(item=current)
        return await self._upload_after(current, contents)

    async def delete_item(self, identifier: str) -> None:
        await self._client.delete_item(identifier)
        logger.info("Deleted %s", identifier)

    def enumerator(self, container_id: str) -> SyncEnumerator:
        return SyncEnumerator(self._client, container_id)

    # ----------------------------
    # Internals
    # ----------------------------
    async def _upload_after(self, item: Item, contents: LocalPath) -> WriteResult:
        try:
            uploaded = await self._client.upload_content(item.item_id, contents)
        except CloudTreeError as exc:
            logger.warning(
                "Content upload for %s failed after metadata step: %s",
                item.item_id,
                exc.__class__.__name__,
            )
            return WriteResult(item=item, upload_error=exc)
        return WriteResult(item=uploaded, uploaded=True)

    def _synthesize(self, identifier: str) -> Item:
        return Item(
            item_id=identifier,
            item_type=FOLDER_TYPE,
            name=SENTINEL_NAMES[identifier],
            trashed=identifier == TRASH_ID,
        )
