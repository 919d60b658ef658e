"""TmpDB: a minimal log-structured key-value store.

Values are appended to a single log file as fixed-header records (see
models.record); an in-memory key directory maps each key to the absolute
offset and size of its latest value so a read is a single positional read.

The store refuses to open an existing file and never replays the log: the
key directory only covers what was written since initialize().
"""

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Self

from config import StoreConfig
from exceptions import (
    EncodingError,
    IllegalStateError,
    LogFileExistsError,
    ReadError,
    StoreIOError,
    WriteError,
)
from models import encode_key_dir_entry, encode_record
from storage import KeyDir, LogFile, file_exists

logger = logging.getLogger(__name__)


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    OPEN = "open"


@dataclass(frozen=True)
class _Uninitialized:
    state = StoreState.UNINITIALIZED


@dataclass(frozen=True)
class _Open:
    log: LogFile
    state = StoreState.OPEN


class TmpDB:
    """Append-only key-value store over one log file.

    Lifecycle: construct, then initialize() to create the log file. Data
    operations on an uninitialized store raise IllegalStateError.

    Invariants:
        - write_position equals the number of bytes this store has appended
        - every key directory entry points at value bytes that were synced
        - the last write for a key wins; older records stay on disk unreachable

    Calls are not synchronized; callers must not overlap operations on the
    same instance.
    """

    def __init__(self, config: StoreConfig | Path | str, clock: Callable[[], float] = time.time):
        if not isinstance(config, StoreConfig):
            config = StoreConfig(path=config)
        self.config = config
        self._clock = clock
        self._status: _Uninitialized | _Open = _Uninitialized()
        self._key_dir = KeyDir()
        self._write_position = 0

    @property
    def path(self) -> Path:
        return self.config.path

    @property
    def state(self) -> StoreState:
        return self._status.state

    @property
    def write_position(self) -> int:
        """Offset where the next record will be appended."""
        return self._write_position

    @property
    def key_dir(self) -> KeyDir:
        return self._key_dir

    def _require_open(self, op: str) -> LogFile:
        if isinstance(self._status, _Open):
            return self._status.log
        raise IllegalStateError(f"Cannot {op}: store is not initialized")

    def _now(self) -> int:
        """Current clock time truncated to whole seconds."""
        return int(self._clock())

    def initialize(self) -> None:
        """Create the log file and open the store.

        Raises LogFileExistsError if the file is already there; an existing
        log is never appended to or replayed.
        """
        if isinstance(self._status, _Open):
            raise IllegalStateError(f"Store at {self.path} is already initialized")

        if file_exists(self.path):
            raise LogFileExistsError(
                f"tmpdb does not support reusing an existing file, use a different path: {self.path}"
            )

        try:
            log = LogFile.create(self.path)
        except FileExistsError as e:
            raise LogFileExistsError(f"Log file appeared while initializing: {self.path}") from e
        except OSError as e:
            raise StoreIOError(f"Error opening file: {self.path}") from e

        self._status = _Open(log)
        self._write_position = 0
        logger.info(f"Initialized tmpdb log at {self.path}")

    def set(self, key: str, value: str) -> None:
        """Append a record for key and sync it before indexing it."""
        log = self._require_open("set")
        timestamp = self._now()

        encoded = encode_record(timestamp, key, value)
        entry = encode_key_dir_entry(timestamp, encoded.value_size, self._write_position + encoded.value_offset)

        try:
            log.append(self._write_position, encoded.record)
            log.sync()
        except OSError as e:
            self._rollback(log)
            raise WriteError(f"Error appending to {self.path}") from e

        self._key_dir.put(key, entry)
        self._write_position += len(encoded.record)
        logger.debug(f"set key_len={len(key)} size={len(encoded.record)} next_pos={self._write_position}")

    def set_many(self, pairs: Iterable[tuple[str, str]]) -> None:
        """Append many records, syncing once per batch_flush_bytes instead of per record.

        All records share one timestamp. Key directory entries are committed
        only after the sync that covers them, and a final sync + commit
        always runs once the input is exhausted. If a sync fails partway,
        records appended since the last commit stay on disk but are not
        reachable through the key directory. A failed append is truncated
        away. An EncodingError commits the records before the bad pair and
        is re-raised.
        """
        log = self._require_open("set_many")
        timestamp = self._now()
        threshold = self.config.batch_flush_bytes

        pending: list[tuple[str, bytes]] = []
        byte_count = 0

        try:
            for key, value in pairs:
                try:
                    encoded = encode_record(timestamp, key, value)
                    entry = encode_key_dir_entry(
                        timestamp, encoded.value_size, self._write_position + encoded.value_offset
                    )
                except EncodingError:
                    # commit what was appended before the bad pair
                    if pending:
                        logger.warning(f"Batch stopped by an encoding error, committing {len(pending)} records")
                        self._commit_batch(log, pending)
                        pending = []
                    raise

                try:
                    log.append(self._write_position, encoded.record)
                except OSError:
                    self._rollback(log)
                    raise
                self._write_position += len(encoded.record)
                byte_count += len(encoded.record)
                pending.append((key, entry))

                if byte_count > threshold:
                    self._commit_batch(log, pending)
                    pending = []
                    byte_count = 0

            self._commit_batch(log, pending)
        except OSError as e:
            if pending:
                logger.warning(f"Batch write failed with {len(pending)} records on disk but not indexed")
            raise WriteError(f"Error appending batch to {self.path}") from e

    def _rollback(self, log: LogFile) -> None:
        """Cut off bytes of a failed append so the file ends at the write position."""
        try:
            log.truncate(self._write_position)
        except OSError as e:
            logger.warning(f"Could not truncate {self.path} back to {self._write_position}: {e}")

    def _commit_batch(self, log: LogFile, pending: list[tuple[str, bytes]]) -> None:
        log.sync()
        committed = self._key_dir.commit(pending)
        logger.debug(f"Committed {committed} key directory entries at pos={self._write_position}")

    def get(self, key: str) -> str | None:
        """Return the latest value for key, or None if it was never set."""
        log = self._require_open("get")

        entry = self._key_dir.get(key)
        if entry is None:
            return None

        try:
            data = log.read_at(entry.value_offset, entry.value_size)
        except OSError as e:
            raise ReadError(f"Error reading {entry.value_size} bytes at offset {entry.value_offset}") from e

        return data.decode("utf-8")

    def keys(self) -> list[str]:
        return self._key_dir.keys()

    def close(self) -> None:
        """Sync and close the log file. The key directory is discarded."""
        if not isinstance(self._status, _Open):
            return

        log = self._status.log
        try:
            log.sync()
        except OSError as e:
            raise WriteError(f"Error syncing {self.path} on close") from e
        finally:
            log.close()
            self._status = _Uninitialized()
            self._key_dir.clear()
            logger.info(f"Closed tmpdb log at {self.path}")

    def __contains__(self, key: object) -> bool:
        return key in self._key_dir

    def __len__(self) -> int:
        return len(self._key_dir)

    def __enter__(self) -> Self:
        if not isinstance(self._status, _Open):
            self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
            return

        try:
            self.close()
        except WriteError as e:
            logger.warning(f"Error closing {self.path} while handling {exc_type.__name__}: {e}")
