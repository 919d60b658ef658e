"""Log record and key directory entry formats.

Struct format reference (https://docs.python.org/3/library/struct.html):
    <  = little-endian byte order
    I  = unsigned int (4 bytes)

Every record in the log file is a 12-byte header followed by the key and
value bytes:

    |                 HEADER                   |
    | timestamp (4) | key_size (4) | value_size (4) | key | value |

Keys and values are stored as UTF-8, so sizes are byte lengths, not
character counts. The key directory keeps one 12-byte entry per key:

    | timestamp (4) | value_size (4) | value_offset (4) |

value_offset in a key directory entry is absolute (from the start of the
log file to the first byte of the value). The value_offset returned by
encode_record is relative to the start of that record.
"""

import struct
from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from exceptions import EncodingError, TruncatedInputError

# Header format: [timestamp:4][key_size:4][value_size:4]
HEADER_FMT = "<III"
HEADER_SIZE = 12  # 4 + 4 + 4

# KeyDirEntry format: [timestamp:4][value_size:4][value_offset:4]
KEY_DIR_ENTRY_FMT = "<III"
KEY_DIR_ENTRY_SIZE = 12  # 4 + 4 + 4

MAX_U32 = 0xFFFFFFFF


def _check_u32(v: int) -> int:
    if v < 0 or v > MAX_U32:
        raise ValueError(f"{v} does not fit in an unsigned 32-bit integer")
    return v


class Header(BaseModel):
    """Fixed-size prefix of every record.

    Layout (12 bytes):
        offset  size  field
        ------  ----  -----
        0       4     timestamp (seconds since epoch)
        4       4     key_size
        8       4     value_size
    """

    model_config = ConfigDict(frozen=True)

    SIZE: ClassVar[int] = HEADER_SIZE

    timestamp: int
    key_size: int
    value_size: int

    @field_validator("timestamp", "key_size", "value_size")
    @classmethod
    def validate_u32(cls, v: int) -> int:
        return _check_u32(v)

    @property
    def record_size(self) -> int:
        """Total on-disk length of the record this header starts."""
        return HEADER_SIZE + self.key_size + self.value_size

    def to_bytes(self) -> bytes:
        """Serialize to bytes. See module docstring for format details."""
        return struct.pack(HEADER_FMT, self.timestamp, self.key_size, self.value_size)

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Deserialize from bytes. Trailing bytes are ignored."""
        if len(data) < cls.SIZE:
            raise TruncatedInputError(f"Data too short: expected at least {cls.SIZE} bytes, got {len(data)}")

        timestamp, key_size, value_size = struct.unpack(HEADER_FMT, data[: cls.SIZE])
        return cls(timestamp=timestamp, key_size=key_size, value_size=value_size)


class KeyDirEntry(BaseModel):
    """Location of the current value of a key in the log file."""

    model_config = ConfigDict(frozen=True)

    SIZE: ClassVar[int] = KEY_DIR_ENTRY_SIZE

    timestamp: int
    value_size: int
    value_offset: int  # absolute, from the start of the log file

    @field_validator("timestamp", "value_size", "value_offset")
    @classmethod
    def validate_u32(cls, v: int) -> int:
        return _check_u32(v)

    def to_bytes(self) -> bytes:
        """Serialize to bytes. See module docstring for format details."""
        return struct.pack(KEY_DIR_ENTRY_FMT, self.timestamp, self.value_size, self.value_offset)

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Deserialize from bytes."""
        if len(data) < cls.SIZE:
            raise TruncatedInputError(f"Data too short: expected at least {cls.SIZE} bytes, got {len(data)}")

        timestamp, value_size, value_offset = struct.unpack(KEY_DIR_ENTRY_FMT, data[: cls.SIZE])
        return cls(timestamp=timestamp, value_size=value_size, value_offset=value_offset)


class Record(BaseModel):
    """A decoded log record."""

    model_config = ConfigDict(frozen=True)

    header: Header
    key: str
    value: str

    @property
    def timestamp(self) -> int:
        return self.header.timestamp

    @property
    def size(self) -> int:
        return self.header.record_size

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Deserialize a record from the start of ``data``."""
        header = Header.from_bytes(data)

        expected_len = header.record_size
        if len(data) < expected_len:
            raise TruncatedInputError(f"Data too short: expected {expected_len} bytes, got {len(data)}")

        key_end = HEADER_SIZE + header.key_size
        key = data[HEADER_SIZE:key_end].decode("utf-8")
        value = data[key_end : key_end + header.value_size].decode("utf-8")

        return cls(header=header, key=key, value=value)


class EncodedRecord(BaseModel):
    """Output of encode_record: the record bytes plus what the key directory needs."""

    model_config = ConfigDict(frozen=True)

    record: bytes
    value_offset: int  # relative to the start of this record
    value_size: int


def encode_header(timestamp: int, key_size: int, value_size: int) -> bytes:
    try:
        header = Header(timestamp=timestamp, key_size=key_size, value_size=value_size)
    except ValidationError as e:
        raise EncodingError(f"Invalid header fields: {e}") from e
    return header.to_bytes()


def decode_header(data: bytes) -> Header:
    return Header.from_bytes(data)


def encode_record(timestamp: int, key: str, value: str) -> EncodedRecord:
    """Encode one record.

    The returned value_offset is relative to the start of the record
    (header size plus key byte length); callers add the record's position
    in the file to get the absolute offset for the key directory.
    """
    key_bytes = key.encode("utf-8")
    value_bytes = value.encode("utf-8")
    header = encode_header(timestamp, len(key_bytes), len(value_bytes))

    return EncodedRecord(
        record=header + key_bytes + value_bytes,
        value_offset=HEADER_SIZE + len(key_bytes),
        value_size=len(value_bytes),
    )


def decode_record(data: bytes) -> Record:
    return Record.from_bytes(data)


def encode_key_dir_entry(timestamp: int, value_size: int, value_offset: int) -> bytes:
    try:
        entry = KeyDirEntry(timestamp=timestamp, value_size=value_size, value_offset=value_offset)
    except ValidationError as e:
        raise EncodingError(f"Invalid key directory entry fields: {e}") from e
    return entry.to_bytes()


def decode_key_dir_entry(data: bytes) -> KeyDirEntry:
    return KeyDirEntry.from_bytes(data)
