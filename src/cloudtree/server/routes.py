"""HTTP routes of the item API."""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional

from fastapi import APIRouter, Body, Depends, File, Query, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from .auth import Principal
from .service import ItemService

NEXT_PAGE_HEADER = "X-Next-Page"


class ItemCreate(BaseModel):
    """Body of POST /items."""
    name: str = Field(min_length=1)
    type: Literal["file", "folder"]
    parentId: Optional[str] = None


def create_router(service: ItemService, principal_dep: Callable[..., Any]) -> APIRouter:
    router = APIRouter()

    @router.get("/items")
    async def list_items(
        response: Response,
        parentId: Optional[str] = None,
        offset: int = Query(0, ge=0),
        limit: Optional[int] = Query(None, ge=1),
        principal: Principal = Depends(principal_dep),
    ):
        """Children of parentId (root when omitted)."""
        items, next_offset = service.list_children(
            principal.owner_id,
            parentId,
            offset=offset,
            limit=limit,
        )
        if next_offset is not None:
            response.headers[NEXT_PAGE_HEADER] = str(next_offset)
        return items

    @router.post("/items", status_code=status.HTTP_201_CREATED)
    async def create_item(data: ItemCreate, principal: Principal = Depends(principal_dep)):
        return service.create_item(principal.owner_id, data.name, data.type, data.parentId)

    @router.get("/items/{token}")
    async def get_item(token: str, principal: Principal = Depends(principal_dep)):
        return service.get_item(principal.owner_id, token)

    @router.put("/items/{token}")
    async def update_item(
        token: str,
        body: Any = Body(...),
        principal: Principal = Depends(principal_dep),
    ):
        """Partial update; only allow-listed fields are applied."""
        return service.update_item(principal.owner_id, token, body)

    @router.delete("/items/{token}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_item(token: str, principal: Principal = Depends(principal_dep)):
        service.delete_item(principal.owner_id, token)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/items/{token}/content")
    async def download_content(token: str, principal: Principal = Depends(principal_dep)):
        path, filename, media_type = service.content_for(principal.owner_id, token)
        return FileResponse(path, media_type=media_type, filename=filename)

    @router.api_route("/items/{token}/content", methods=["PUT", "POST"])
    async def upload_content(
        token: str,
        file: UploadFile = File(...),
        principal: Principal = Depends(principal_dep),
    ):
        try:
            return await run_in_threadpool(
                service.upload_content,
                principal.owner_id,
                token,
                file.filename,
                file.file,
            )
        finally:
            await file.close()

    @router.get("/changes")
    async def list_changes(
        since: str = Query(...),
        limit: Optional[int] = Query(None, ge=1),
        principal: Principal = Depends(principal_dep),
    ):
        """Items written and ids deleted after the ``since`` anchor."""
        return service.changes_since(principal.owner_id, since, limit=limit)

    @router.get("/changes/anchor")
    async def current_anchor(principal: Principal = Depends(principal_dep)):
        return {"anchor": service.current_anchor()}

    return router
