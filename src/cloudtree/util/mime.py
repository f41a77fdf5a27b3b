from __future__ import annotations

import mimetypes

FILE_TYPE: str = "file"
FOLDER_TYPE: str = "folder"
ITEM_TYPES: frozenset[str] = frozenset({FILE_TYPE, FOLDER_TYPE})

FOLDER_MIME: str = "inode/directory"
DEFAULT_MIME: str = "application/octet-stream"


def is_folder(item_type: str | None) -> bool:
    return item_type == FOLDER_TYPE


def is_file(item_type: str | None) -> bool:
    return item_type == FILE_TYPE


def guess_content_type(filename: str, item_type: str | None = FILE_TYPE) -> str:
    """
    Infer a MIME type from the file extension.

    Folders always map to FOLDER_MIME; unknown extensions fall back to
    generic binary data.
    """
    if is_folder(item_type):
        return FOLDER_MIME
    guessed, _ = mimetypes.guess_type(filename, strict=False)
    return guessed or DEFAULT_MIME
