"""Storage layer: log file I/O and the in-memory key directory."""

from storage.files import file_exists
from storage.keydir import KeyDir
from storage.log_file import LogFile, iter_records

__all__ = [
    "LogFile",
    "KeyDir",
    "file_exists",
    "iter_records",
]
