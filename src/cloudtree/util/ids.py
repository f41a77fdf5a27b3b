from __future__ import annotations

import base64
import binascii
import re
import uuid

from cloudtree.errors import InvalidIdentifierError

# Sentinels are literal strings on every layer and never go through the codec.
ROOT_ID: str = "root"
TRASH_ID: str = "trash"
SENTINEL_IDS: frozenset[str] = frozenset({ROOT_ID, TRASH_ID})
SENTINEL_NAMES: dict[str, str] = {ROOT_ID: "Root", TRASH_ID: "Recently Deleted"}

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]*$")


def is_sentinel(identifier: str | None) -> bool:
    return identifier in SENTINEL_IDS


def encode_bytes(raw: bytes) -> str:
    """URL-safe base64 of ``raw`` with the '=' padding stripped."""
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_bytes(token: str) -> bytes:
    """
    Exact inverse of encode_bytes.

    Raises:
        InvalidIdentifierError: for characters outside the URL-safe alphabet,
            impossible lengths, or encodings encode_bytes would never produce.
    """
    if not isinstance(token, str) or not _TOKEN_RE.match(token) or len(token) % 4 == 1:
        raise InvalidIdentifierError("Malformed identifier token", details={"token": token})

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise InvalidIdentifierError(
            "Malformed identifier token",
            details={"token": token},
            cause=exc,
        ) from exc

    # Reject non-canonical tokens (stray trailing bits).
    if encode_bytes(raw) != token:
        raise InvalidIdentifierError("Non-canonical identifier token", details={"token": token})
    return raw


def encode_id(identifier: str) -> str:
    """Encode an item identifier for use in URLs and request bodies."""
    if is_sentinel(identifier):
        return identifier
    return encode_bytes(identifier.encode("utf-8"))


def decode_id(token: str) -> str:
    """Decode a token produced by encode_id; sentinels pass through."""
    if is_sentinel(token):
        return token
    if not token:
        raise InvalidIdentifierError("Empty identifier token")

    raw = decode_bytes(token)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidIdentifierError(
            "Identifier is not valid UTF-8",
            details={"token": token},
            cause=exc,
        ) from exc


def new_item_id() -> str:
    """Generate a fresh, never-reused item identifier."""
    return uuid.uuid4().hex
