"""Error taxonomy for tmpdb.

Every error raised by the store carries an ``ErrorKind`` so callers can
branch on ``err.kind`` instead of inspecting messages.
"""

from enum import Enum
from typing import ClassVar


class ErrorKind(Enum):
    """Closed set of failure kinds."""

    FILE_EXISTS = "file_exists"
    FILE_CHECK = "file_check"
    IO = "io"
    ILLEGAL_STATE = "illegal_state"
    ENCODING = "encoding"
    TRUNCATED_INPUT = "truncated_input"
    WRITE = "write"
    READ = "read"


class TmpDBError(Exception):
    """Base class for all tmpdb errors."""

    kind: ClassVar[ErrorKind]


class LogFileExistsError(TmpDBError, FileExistsError):
    """The log file already exists; tmpdb never reuses an existing file."""

    kind = ErrorKind.FILE_EXISTS


class FileCheckError(TmpDBError):
    """Checking for the log file failed for a reason other than "not found"."""

    kind = ErrorKind.FILE_CHECK


class StoreIOError(TmpDBError):
    """Opening the log file failed."""

    kind = ErrorKind.IO


class IllegalStateError(TmpDBError):
    """Operation not allowed in the store's current state."""

    kind = ErrorKind.ILLEGAL_STATE


class EncodingError(TmpDBError, ValueError):
    """A size or offset field does not fit an unsigned 32-bit integer."""

    kind = ErrorKind.ENCODING


class TruncatedInputError(TmpDBError, ValueError):
    """Fewer bytes than the header or record declares."""

    kind = ErrorKind.TRUNCATED_INPUT


class WriteError(TmpDBError):
    """Appending to or syncing the log file failed."""

    kind = ErrorKind.WRITE


class ReadError(TmpDBError):
    """Reading a value from the log file failed."""

    kind = ErrorKind.READ
