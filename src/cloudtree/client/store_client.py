"""Async HTTP client for the remote item store."""

from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from cloudtree.auth import CredentialProvider
from cloudtree.config import ClientSettings
from cloudtree.errors import (
    CloudTreeError,
    EmptyResponseError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidResponseError,
    LocalIOError,
    NetworkError,
    NothingToUpdateError,
    map_http_error,
)
from cloudtree.models import ChangeSet, Item, ItemFields, Page
from cloudtree.util.ids import ROOT_ID, encode_id
from cloudtree.util.mime import ITEM_TYPES

from .diff import build_field_diff

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class RemoteStoreClient:
    """
    Item store client.

    Notes:
        - Every call is an independent request/response exchange; concurrent
          calls carry no ordering guarantee between them.
        - No retries happen here; NetworkError is left to the caller's policy.
        - Cancelling the awaiting task abandons the exchange client-side only.
    """

    DEFAULT_TIMEOUT: float = 30.0
    NEXT_PAGE_HEADER: str = "X-Next-Page"

    def __init__(
        self,
        credentials: CredentialProvider,
        *,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if http_client is None:
            if not base_url:
                raise InvalidArgumentError("base_url is required without http_client")
            http_client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
            self._owns_http = True
        else:
            self._owns_http = False
        self._http = http_client
        self._credentials = credentials

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "RemoteStoreClient":
        """Build a client from the YAML client section."""
        if settings.token_file:
            credentials = CredentialProvider.from_token_file(settings.token_file)
        elif settings.token:
            credentials = CredentialProvider.from_token(settings.token)
        else:
            raise InvalidArgumentError("client settings need token_file or token")
        return cls(credentials, base_url=settings.base_url, timeout=settings.timeout)

    async def __aenter__(self) -> "RemoteStoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ----------------------------
    # Public API
    # ----------------------------
    async def list_children(
        self,
        parent_id: Optional[str] = None,
        *,
        page_token: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        """List one page of children; None or the root sentinel lists root-level items."""
        params: dict[str, Any] = {}
        if parent_id and parent_id != ROOT_ID:
            params["parentId"] = encode_id(parent_id)
        if page_token:
            params["offset"] = page_token
        if limit is not None:
            params["limit"] = limit

        resp = await self._request("GET", "/items", params=params)
        data = self._decode_json(resp)
        if not isinstance(data, list):
            raise InvalidResponseError(
                "Listing must be a JSON array",
                details={"payload_type": type(data).__name__},
            )
        items = [Item.from_dict(entry) for entry in data]
        next_token = resp.headers.get(self.NEXT_PAGE_HEADER) or None
        return Page(items=items, next_page_token=next_token)

    async def list_all_children(self, parent_id: Optional[str] = None) -> list[Item]:
        all_items: list[Item] = []
        page_token: Optional[str] = None

        while True:
            page = await self.list_children(parent_id, page_token=page_token)
            all_items.extend(page.items)
            page_token = page.next_page_token
            if not page_token:
                break

        return all_items

    async def get_metadata(self, item_id: str) -> Item:
        resp = await self._request("GET", _item_path(item_id))
        return self._decode_item(resp)

    async def download_content(
        self,
        item_id: str,
        destination: PathLike,
        *,
        overwrite: bool = False,
    ) -> Path:
        """
        Stream the item's blob to ``destination`` and return it.

        The body is written to a temporary sibling first and renamed into
        place, so a failed transfer never leaves a partial destination.
        """
        dest = Path(destination)
        if dest.exists() and not overwrite:
            raise LocalIOError(
                "Destination file exists and overwrite is False",
                details={"destination": str(dest)},
            )

        tmp = dest.with_name(f".{dest.name}.{uuid.uuid4().hex}.part")
        path = f"{_item_path(item_id)}/content"
        headers = await self._credentials.auth_headers()
        try:
            async with self._http.stream("GET", path, headers=headers) as resp:
                logger.debug("GET %s -> %s", path, resp.status_code)
                if resp.is_error:
                    await resp.aread()
                    raise self._error_from_response(resp)
                await _write_stream(resp, tmp)
            try:
                os.replace(tmp, dest)
            except OSError as exc:
                raise LocalIOError(
                    "Failed to move downloaded content into place",
                    details={"destination": str(dest)},
                    cause=exc,
                ) from exc
        except httpx.TransportError as exc:
            raise NetworkError(
                "Network error",
                details={"method": "GET", "path": path},
                cause=exc,
            ) from exc
        finally:
            tmp.unlink(missing_ok=True)

        return dest

    async def create_item(
        self,
        parent_id: Optional[str],
        name: str,
        item_type: str,
    ) -> Item:
        if item_type not in ITEM_TYPES:
            raise InvalidArgumentError(
                "item_type must be 'file' or 'folder'",
                details={"item_type": item_type},
            )
        body: dict[str, Any] = {"name": name, "type": item_type}
        if parent_id and parent_id != ROOT_ID:
            body["parentId"] = encode_id(parent_id)

        resp = await self._request("POST", "/items", json=body)
        return self._decode_item(resp)

    async def update_item(
        self,
        item_id: str,
        changed_fields: ItemFields,
        item: Item,
    ) -> Item:
        """Send only the changed, present fields of ``item``."""
        diff = build_field_diff(changed_fields, item)
        return await self.update_item_fields(item_id, diff)

    async def update_item_fields(self, item_id: str, diff: dict[str, Any]) -> Item:
        if not diff:
            raise NothingToUpdateError("Nothing to update", details={"item_id": item_id})
        resp = await self._request("PUT", _item_path(item_id), json=diff)
        return self._decode_item(resp)

    async def delete_item(self, item_id: str) -> None:
        await self._request("DELETE", _item_path(item_id))

    async def upload_content(self, item_id: str, source_path: PathLike) -> Item:
        """Multipart-upload a local file as the item's content."""
        src = Path(source_path)
        try:
            f = open(src, "rb")
        except OSError as exc:
            raise LocalIOError(
                "Failed to open upload source",
                details={"source_path": str(src)},
                cause=exc,
            ) from exc

        with f:
            files = {"file": (src.name, f, "application/octet-stream")}
            resp = await self._request("POST", f"{_item_path(item_id)}/content", files=files)
        return self._decode_item(resp)

    async def changes_since(self, anchor: str, *, limit: Optional[int] = None) -> ChangeSet:
        params: dict[str, Any] = {"since": anchor}
        if limit is not None:
            params["limit"] = limit

        resp = await self._request("GET", "/changes", params=params)
        data = self._decode_json(resp)
        if not isinstance(data, dict):
            raise InvalidResponseError("Change set must be a JSON object")

        updated = data.get("updated", [])
        deleted = data.get("deleted", [])
        new_anchor = data.get("anchor")
        if not isinstance(updated, list) or not isinstance(deleted, list):
            raise InvalidResponseError("Change set lists are malformed")
        if not isinstance(new_anchor, str) or not new_anchor:
            raise InvalidResponseError("Change set lacks an anchor")

        return ChangeSet(
            updated=[Item.from_dict(entry) for entry in updated],
            deleted_ids=[d for d in deleted if isinstance(d, str)],
            anchor=new_anchor,
            more_coming=data.get("moreComing") is True,
        )

    async def current_anchor(self) -> str:
        resp = await self._request("GET", "/changes/anchor")
        data = self._decode_json(resp)
        anchor = data.get("anchor") if isinstance(data, dict) else None
        if not isinstance(anchor, str) or not anchor:
            raise InvalidResponseError("Missing anchor in response")
        return anchor

    # ----------------------------
    # Internals
    # ----------------------------
    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = await self._credentials.auth_headers()
        try:
            resp = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as exc:
            raise NetworkError(
                "Network error",
                details={"method": method, "path": path},
                cause=exc,
            ) from exc

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        if resp.is_error:
            raise self._error_from_response(resp)
        return resp

    def _decode_json(self, resp: httpx.Response) -> Any:
        if not resp.content:
            raise EmptyResponseError(
                "Empty response",
                details={"status_code": resp.status_code},
            )
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidResponseError(
                "Invalid JSON",
                details={"status_code": resp.status_code},
                cause=exc,
            ) from exc

    def _decode_item(self, resp: httpx.Response) -> Item:
        return Item.from_dict(self._decode_json(resp))

    def _error_from_response(self, resp: httpx.Response) -> CloudTreeError:
        return map_http_error(_http_error_to_info(resp))


def _item_path(item_id: str) -> str:
    return f"/items/{encode_id(item_id)}"


async def _write_stream(resp: httpx.Response, tmp: Path) -> None:
    try:
        tmp.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "wb") as f:
            async for chunk in resp.aiter_bytes():
                f.write(chunk)
    except OSError as exc:
        raise LocalIOError(
            "Failed to write downloaded content",
            details={"path": str(tmp)},
            cause=exc,
        ) from exc


def _http_error_to_info(resp: httpx.Response) -> HttpErrorInfo:
    message = None
    reason = None
    details: dict[str, Any] = {"path": resp.request.url.path}

    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        if isinstance(payload.get("error"), str):
            message = payload["error"]
        if isinstance(payload.get("code"), str):
            reason = payload["code"]

    return HttpErrorInfo(
        status_code=resp.status_code,
        reason=reason,
        message=message,
        details=details,
    )
