"""Bearer-token authentication for the item API."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cloudtree.errors import AuthError


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller."""

    owner_id: str


class TokenRegistry:
    """Maps opaque bearer tokens to owner ids."""

    def __init__(self, tokens: Optional[Mapping[str, str]] = None) -> None:
        self._tokens = dict(tokens or {})

    def __len__(self) -> int:
        return len(self._tokens)

    def resolve(self, token: str) -> Optional[Principal]:
        """Return the principal for ``token``, or None if unknown."""
        if not token:
            return None
        found: Optional[str] = None
        # No early exit: every entry is compared.
        for known, owner_id in self._tokens.items():
            if secrets.compare_digest(token.encode("utf-8"), known.encode("utf-8")):
                found = owner_id
        return Principal(owner_id=found) if found is not None else None


def make_principal_dependency(
    registry: TokenRegistry,
) -> Callable[..., Awaitable[Principal]]:
    """Build the FastAPI dependency that authenticates every request."""
    bearer = HTTPBearer(auto_error=False)

    async def current_principal(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    ) -> Principal:
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise AuthError("Missing bearer token")
        principal = registry.resolve(credentials.credentials)
        if principal is None:
            raise AuthError("Invalid bearer token")
        return principal

    return current_principal
