"""Bearer credential provider for cloudtree clients."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Optional, Sequence

from google.auth.credentials import Credentials as BaseCredentials
from google.oauth2.credentials import Credentials

from cloudtree.errors import AuthError, InvalidArgumentError

logger = logging.getLogger(__name__)


class CredentialProvider:
    """
    Supplies the Authorization header for every request.

    Token acquisition is out of scope: the provider wraps credentials that
    already exist (a raw bearer token, or an authorized-user token file) and
    refreshes them when they expired and carry a refresh token.
    """

    def __init__(
        self,
        credentials: BaseCredentials,
        *,
        token_file: Optional[str] = None,
    ) -> None:
        self._credentials = credentials
        self._token_file = token_file
        self._lock = asyncio.Lock()

    @classmethod
    def from_token(cls, token: str) -> "CredentialProvider":
        """Wrap a static bearer token (never refreshed)."""
        if not isinstance(token, str) or not token.strip():
            raise InvalidArgumentError("token must be a non-empty string")
        return cls(Credentials(token=token))

    @classmethod
    def from_token_file(
        cls,
        token_file: str,
        *,
        scopes: Optional[Sequence[str]] = None,
    ) -> "CredentialProvider":
        """
        Load authorized-user credentials from a JSON token file.

        Raises:
            AuthError: if the file is missing or cannot be parsed.
        """
        if not os.path.exists(token_file):
            raise AuthError("token_file does not exist", details={"token_file": token_file})
        try:
            creds = Credentials.from_authorized_user_file(
                token_file,
                scopes=list(scopes) if scopes else None,
            )
        except Exception as exc:
            raise AuthError(
                "Failed to load token_file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc
        return cls(creds, token_file=token_file)

    @property
    def credentials(self) -> BaseCredentials:
        return self._credentials

    async def auth_headers(self) -> dict[str, str]:
        """Return headers carrying ``Authorization: Bearer <token>``."""
        async with self._lock:
            if not self._credentials.valid:
                await asyncio.to_thread(self._refresh)

        headers: dict[str, Any] = {}
        self._credentials.apply(headers)
        return headers

    def _refresh(self) -> None:
        creds = self._credentials
        if not getattr(creds, "refresh_token", None):
            raise AuthError("Credentials are invalid and cannot be refreshed")

        try:
            from google.auth.transport.requests import Request
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-auth requests transport is not available",
                details={"hint": "Install requests"},
                cause=exc,
            ) from exc

        try:
            creds.refresh(Request())
        except Exception as exc:
            raise AuthError("Failed to refresh credentials", cause=exc) from exc

        logger.debug("Refreshed bearer credentials")
        if self._token_file:
            self._save_credentials()

    def _save_credentials(self) -> None:
        token_file = self._token_file
        assert token_file is not None
        token_dir = os.path.dirname(token_file)
        if token_dir:
            os.makedirs(token_dir, exist_ok=True)

        try:
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(self._credentials.to_json())  # type: ignore[attr-defined]
        except Exception as exc:
            raise AuthError(
                "Failed to save token file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc
