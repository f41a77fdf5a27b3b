"""Public auth exports for cloudtree."""

from __future__ import annotations

from .credential_provider import CredentialProvider

__all__ = ["CredentialProvider"]
