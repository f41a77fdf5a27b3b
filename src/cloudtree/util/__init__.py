from .ids import (
    ROOT_ID,
    SENTINEL_IDS,
    SENTINEL_NAMES,
    TRASH_ID,
    decode_bytes,
    decode_id,
    encode_bytes,
    encode_id,
    is_sentinel,
    new_item_id,
)
from .mime import (
    DEFAULT_MIME,
    FILE_TYPE,
    FOLDER_MIME,
    FOLDER_TYPE,
    ITEM_TYPES,
    guess_content_type,
    is_file,
    is_folder,
)
from .time import from_epoch, normalize_dt, now_epoch, now_utc, to_epoch

__all__ = [
    "ROOT_ID",
    "TRASH_ID",
    "SENTINEL_IDS",
    "SENTINEL_NAMES",
    "is_sentinel",
    "encode_bytes",
    "decode_bytes",
    "encode_id",
    "decode_id",
    "new_item_id",
    "FILE_TYPE",
    "FOLDER_TYPE",
    "ITEM_TYPES",
    "FOLDER_MIME",
    "DEFAULT_MIME",
    "is_file",
    "is_folder",
    "guess_content_type",
    "now_utc",
    "now_epoch",
    "to_epoch",
    "from_epoch",
    "normalize_dt",
]
