"""Pydantic models for the tmpdb on-disk record format."""

from models.record import (
    HEADER_SIZE,
    KEY_DIR_ENTRY_SIZE,
    MAX_U32,
    EncodedRecord,
    Header,
    KeyDirEntry,
    Record,
    decode_header,
    decode_key_dir_entry,
    decode_record,
    encode_header,
    encode_key_dir_entry,
    encode_record,
)

__all__ = [
    "HEADER_SIZE",
    "KEY_DIR_ENTRY_SIZE",
    "MAX_U32",
    "EncodedRecord",
    "Header",
    "KeyDirEntry",
    "Record",
    "decode_header",
    "decode_key_dir_entry",
    "decode_record",
    "encode_header",
    "encode_key_dir_entry",
    "encode_record",
]
