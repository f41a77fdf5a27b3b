"""cloudtree public API."""

from __future__ import annotations

from cloudtree.auth import CredentialProvider
from cloudtree.bridge import ReplicationBridge
from cloudtree.client import RemoteStoreClient, build_field_diff
from cloudtree.config import ClientSettings, ServerSettings, Settings, load_settings
from cloudtree.errors import (
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
from cloudtree.models import (
    ChangeSet,
    FetchResult,
    Item,
    ItemCapabilities,
    ItemFields,
    ItemTemplate,
    ItemVersion,
    Page,
    WriteResult,
)
from cloudtree.sync import SyncEnumerator
from cloudtree.util.ids import ROOT_ID, TRASH_ID, decode_id, encode_id

__all__ = [
    # High-level
    "ReplicationBridge",
    "RemoteStoreClient",
    "SyncEnumerator",
    "build_field_diff",
    # Auth / Config
    "CredentialProvider",
    "ClientSettings",
    "ServerSettings",
    "Settings",
    "load_settings",
    # Identifiers
    "ROOT_ID",
    "TRASH_ID",
    "encode_id",
    "decode_id",
    # Models
    "Item",
    "ItemTemplate",
    "ItemVersion",
    "ItemFields",
    "ItemCapabilities",
    "Page",
    "ChangeSet",
    "FetchResult",
    "WriteResult",
    # Errors
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
