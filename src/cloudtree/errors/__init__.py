"""Public error exports for cloudtree."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    AuthError,
    CloudTreeError,
    ConflictError,
    EmptyResponseError,
    ForbiddenError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidIdentifierError,
    InvalidResponseError,
    LocalIOError,
    NetworkError,
    NotAFileError,
    NotFoundError,
    NothingToUpdateError,
    UploadFailedError,
    map_http_error,
)

__all__ = [
    "CloudTreeError",
    "InvalidArgumentError",
    "NothingToUpdateError",
    "InvalidIdentifierError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "NotAFileError",
    "ConflictError",
    "UploadFailedError",
    "ApiError",
    "NetworkError",
    "EmptyResponseError",
    "InvalidResponseError",
    "LocalIOError",
    "HttpErrorInfo",
    "map_http_error",
]
