"""Byte-level I/O for the append-only log file.

File layout:
    A flat stream of records in write order. No file header, no end
    marker; the file length is the sum of all record lengths.

    [record 0][record 1][record 2]...

Each record is a 12-byte header followed by key and value bytes (see
models.record). LogFile only moves bytes; the store decides where they go
and what they mean.
"""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO, Self

from exceptions import ReadError
from models import HEADER_SIZE, Header, Record

logger = logging.getLogger(__name__)


class LogFile:
    """Owns the single file handle used for appending and reading records.

    The handle is opened read/write; appends are written at an explicit
    position supplied by the caller so a failed append never shifts where
    the next record lands.
    """

    def __init__(self, path: Path | str, file: BinaryIO):
        self.path = Path(path)
        self._file: BinaryIO | None = file

    @classmethod
    def create(cls, path: Path | str) -> Self:
        """Create a new, empty log file. Raises FileExistsError if it exists."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        # x: exclusive create, fail if the file already exists
        file = open(path, "xb+")
        logger.debug(f"Created log file {path}")
        return cls(path, file)

    def _handle(self) -> BinaryIO:
        if self._file is None:
            raise RuntimeError("Log file is closed")
        return self._file

    def append(self, position: int, data: bytes) -> None:
        """Write ``data`` starting at ``position``."""
        f = self._handle()
        f.seek(position)
        f.write(data)

    def truncate(self, position: int) -> None:
        """Drop everything from ``position`` to the end of the file."""
        f = self._handle()
        f.truncate(position)
        f.seek(position)

    def sync(self) -> None:
        """Flush buffered writes and force them to stable storage."""
        f = self._handle()
        f.flush()
        os.fsync(f.fileno())

    def read_at(self, offset: int, size: int) -> bytes:
        """Read exactly ``size`` bytes starting at ``offset``."""
        f = self._handle()
        f.seek(offset)
        data = f.read(size)

        if len(data) < size:
            raise ReadError(f"Incomplete read at offset {offset}: expected {size} bytes, got {len(data)}")

        return data

    @property
    def size(self) -> int:
        """Current file length as reported by the OS."""
        return os.fstat(self._handle().fileno()).st_size

    @property
    def closed(self) -> bool:
        return self._file is None

    def close(self) -> None:
        """Close the log file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def iter_records(path: Path | str) -> Iterator[tuple[int, Record]]:
    """Yield ``(offset, record)`` for every record in an existing log file.

    Read-only scan for inspection; it does not rebuild a key directory.
    Raises TruncatedInputError if the file ends partway through a record.
    """
    with open(path, "rb") as f:
        offset = 0
        while True:
            header_data = f.read(HEADER_SIZE)
            if not header_data:
                break  # EOF

            header = Header.from_bytes(header_data)
            body = f.read(header.key_size + header.value_size)
            record = Record.from_bytes(header_data + body)

            yield offset, record
            offset += record.size

