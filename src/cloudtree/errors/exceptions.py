"""Exception hierarchy and HTTP error mapping for cloudtree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class CloudTreeError(Exception):
    """
    Base exception for cloudtree.

    Attributes:
        details: Optional structured information (e.g., HTTP status, item id).
        cause: Optional original exception that triggered this error.
        status_code: HTTP status the server answers with for this error.
        code: Machine-readable code carried in the server's error body.
    """

    status_code: int = 500
    code: str = "api_error"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class InvalidArgumentError(CloudTreeError):
    """Raised when request arguments are invalid (HTTP 400)."""

    status_code = 400
    code = "invalid_argument"


class NothingToUpdateError(InvalidArgumentError):
    """Raised when a partial update carries no changed field."""

    code = "nothing_to_update"


class InvalidIdentifierError(InvalidArgumentError):
    """Raised when an identifier token cannot be decoded."""

    code = "invalid_identifier"


class AuthError(CloudTreeError):
    """Raised when the bearer credential is missing or rejected (HTTP 401)."""

    status_code = 401
    code = "unauthorized"


class ForbiddenError(CloudTreeError):
    """Raised when the record belongs to another owner (HTTP 403)."""

    status_code = 403
    code = "forbidden"


class NotFoundError(CloudTreeError):
    """Raised when a record or its content is not found (HTTP 404)."""

    status_code = 404
    code = "not_found"


class NotAFileError(NotFoundError):
    """Raised when content is requested for a folder or a file without content."""

    code = "not_a_file"


class ConflictError(CloudTreeError):
    """Raised when a change would break the tree (e.g., a parent cycle)."""

    status_code = 409
    code = "conflict"


class UploadFailedError(CloudTreeError):
    """Raised when an uploaded blob cannot be moved into the content root."""

    status_code = 500
    code = "upload_failed"


class ApiError(CloudTreeError):
    """Raised for unclassified server errors (5xx, unknown 4xx, etc.)."""


class NetworkError(CloudTreeError):
    """Raised when transport failures prevent the request."""


class EmptyResponseError(CloudTreeError):
    """Raised when the server answered without a body where one is required."""


class InvalidResponseError(CloudTreeError):
    """Raised when the response is not valid JSON or lacks a non-empty 'id'."""


class LocalIOError(CloudTreeError):
    """Raised when writing or moving a local file fails."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to cloudtree exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_CODED_ERRORS: dict[str, type[CloudTreeError]] = {
    cls.code: cls
    for cls in (
        NothingToUpdateError,
        InvalidIdentifierError,
        NotAFileError,
        UploadFailedError,
    )
}


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> CloudTreeError:
    """
    Map an HTTP error to a cloudtree exception.

    Policy:
        - a known error code in ``reason`` wins when its status matches
        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> ForbiddenError
        - 404 -> NotFoundError
        - 409 -> ConflictError
        - otherwise -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    coded = _CODED_ERRORS.get(info.reason or "")
    if coded is not None and coded.status_code == info.status_code:
        return coded(message, details=details, cause=cause)

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        return ForbiddenError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code == 409:
        return ConflictError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)
