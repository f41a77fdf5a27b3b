"""FastAPI application factory for the item store server."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cloudtree.config import ServerSettings
from cloudtree.errors import AuthError, CloudTreeError, InvalidArgumentError

from .auth import TokenRegistry, make_principal_dependency
from .content import ContentRoot
from .routes import create_router
from .service import ItemService
from .store import RecordStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(name)s] %(levelname)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``cloudtree`` logger once."""
    root_logger = logging.getLogger("cloudtree")
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())
    return root_logger


def error_body(exc: CloudTreeError) -> dict[str, str]:
    return {"error": str(exc), "code": exc.code}


def create_app(
    settings: ServerSettings,
    *,
    store: Optional[RecordStore] = None,
    registry: Optional[TokenRegistry] = None,
) -> FastAPI:
    """
    Build the item API.

    Args:
        settings: Server settings; ``content_root`` is created if missing.
        store: Record store to serve; a fresh empty one by default.
        registry: Token registry; built from ``settings.tokens`` by default.
    """
    registry = registry if registry is not None else TokenRegistry(settings.tokens)
    if len(registry) == 0:
        logger.warning("No bearer tokens configured; every request will be rejected")

    service = ItemService(
        store if store is not None else RecordStore(),
        ContentRoot(settings.content_root),
        page_size=settings.page_size,
    )

    app = FastAPI(title="cloudtree")
    app.state.service = service
    app.include_router(create_router(service, make_principal_dependency(registry)))

    @app.exception_handler(CloudTreeError)
    async def handle_cloudtree_error(request: Request, exc: CloudTreeError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(error_body(exc), status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        message = first.get("msg", "Invalid request")
        return JSONResponse(
            {"error": message, "code": InvalidArgumentError.code},
            status_code=InvalidArgumentError.status_code,
        )

    logger.info("Serving content from %s", service.content.root)
    return app
