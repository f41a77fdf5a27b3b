"""YAML settings for the cloudtree server and client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional

import yaml

from cloudtree.errors import InvalidArgumentError

SETTINGS_ENV_VAR: str = "CLOUDTREE_SETTINGS"
DEFAULT_SETTINGS_FILE: str = "settings.yaml"


@dataclass(frozen=True, slots=True)
class ServerSettings:
    """
    Server settings.

    ``tokens`` maps accepted bearer tokens to the owner id they authenticate.
    """

    content_root: str
    tokens: dict[str, str] = field(default_factory=dict)
    host: str = "127.0.0.1"
    port: int = 8080
    page_size: int = 500
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(self.content_root, str) or not self.content_root.strip():
            raise InvalidArgumentError("server.content_root must be a non-empty string")
        if not isinstance(self.page_size, int) or self.page_size <= 0:
            raise InvalidArgumentError("server.page_size must be a positive integer")
        if not isinstance(self.tokens, dict):
            raise InvalidArgumentError("server.tokens must be a mapping")
        for token, owner in self.tokens.items():
            if not isinstance(token, str) or not token or not isinstance(owner, str) or not owner:
                raise InvalidArgumentError("server.tokens must map non-empty strings to owner ids")


@dataclass(frozen=True, slots=True)
class ClientSettings:
    base_url: str
    timeout: float = 30.0
    token_file: Optional[str] = None
    token: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Settings:
    server: Optional[ServerSettings] = None
    client: Optional[ClientSettings] = None


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from YAML.

    The path defaults to $CLOUDTREE_SETTINGS, then ./settings.yaml.

    Raises:
        InvalidArgumentError: if the file is missing or malformed.
    """
    path = path or os.environ.get(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f.read()) or {}
    except OSError as exc:
        raise InvalidArgumentError(
            "Cannot read settings file",
            details={"path": path},
            cause=exc,
        ) from exc
    except yaml.YAMLError as exc:
        raise InvalidArgumentError(
            "Settings file is not valid YAML",
            details={"path": path},
            cause=exc,
        ) from exc

    if not isinstance(data, dict):
        raise InvalidArgumentError("Settings root must be a mapping", details={"path": path})
    return settings_from_dict(data)


def settings_from_dict(data: dict[str, Any]) -> Settings:
    server = _section(data, "server")
    client = _section(data, "client")
    try:
        return Settings(
            server=ServerSettings(**server) if server is not None else None,
            client=ClientSettings(**client) if client is not None else None,
        )
    except TypeError as exc:
        raise InvalidArgumentError("Unknown or missing settings key", cause=exc) from exc


def _section(data: dict[str, Any], name: str) -> Optional[dict[str, Any]]:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise InvalidArgumentError(f"'{name}' settings must be a mapping")
    return value
