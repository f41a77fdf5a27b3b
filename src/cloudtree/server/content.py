"""Blob storage under a fixed content root."""

from __future__ import annotations

import logging
import os
import shutil
import uuid
from pathlib import Path, PureWindowsPath
from typing import BinaryIO

from cloudtree.errors import CloudTreeError, InvalidArgumentError, NotAFileError, UploadFailedError

logger = logging.getLogger(__name__)


class PathEscapeError(InvalidArgumentError):
    """Raised when a stored relative path would resolve outside the content root."""


class ContentRoot:
    """
    Content blob area.

    Records keep paths relative to the root; every resolution is checked to
    stay inside it, symlinks included.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root).expanduser().resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, relative: str) -> Path:
        """
        Resolve a stored relative path.

        Raises:
            PathEscapeError: for empty or absolute paths, or paths leaving the root.
        """
        if not isinstance(relative, str) or not relative or os.path.isabs(relative):
            raise PathEscapeError("Content path must be relative", details={"path": relative})
        if PureWindowsPath(relative).drive:
            raise PathEscapeError("Content path must be relative", details={"path": relative})

        target = (self._root / relative).resolve()
        if target == self._root or self._root not in target.parents:
            raise PathEscapeError("Content path escapes the content root", details={"path": relative})
        return target

    def open_blob(self, relative: str) -> Path:
        path = self.resolve(relative)
        if not path.is_file():
            raise NotAFileError("No content", details={"path": relative})
        return path

    def store(self, item_id: str, filename: str | None, stream: BinaryIO) -> str:
        """
        Copy ``stream`` to ``<item_id>_<basename>`` and return the relative path.

        Raises:
            UploadFailedError: if the blob cannot be written or moved into place.
        """
        base = _basename(filename) or "content"
        relative = f"{item_id}_{base}"
        dest = self.resolve(relative)
        tmp = dest.with_name(f".{relative}.{uuid.uuid4().hex}.part")

        try:
            with open(tmp, "wb") as f:
                shutil.copyfileobj(stream, f)
            os.replace(tmp, dest)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise UploadFailedError(
                "Upload failed",
                details={"item_id": item_id},
                cause=exc,
            ) from exc

        logger.debug("Stored blob %s", relative)
        return relative

    def remove(self, relative: str) -> bool:
        """Best-effort blob removal; failures are logged and reported as False."""
        try:
            self.resolve(relative).unlink()
        except FileNotFoundError:
            return False
        except (CloudTreeError, OSError) as exc:
            logger.warning("Could not remove blob %s: %s", relative, exc)
            return False
        return True


def _basename(filename: str | None) -> str:
    if not filename:
        return ""
    name = PureWindowsPath(filename).name
    return "" if name in (".", "..") else name
