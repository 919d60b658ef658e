"""In-memory key directory.

Maps each key to the encoded 12-byte KeyDirEntry of its most recent value.
The directory lives only as long as the store is open; it is never written
to disk and never rebuilt from the log.
"""

from collections.abc import Iterable, Iterator

from models import KeyDirEntry, decode_key_dir_entry


class KeyDir:
    """Key -> encoded KeyDirEntry. Last write wins; no history is kept."""

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}

    def get(self, key: str) -> KeyDirEntry | None:
        """Decoded entry for key, or None if the key was never committed."""
        raw = self._entries.get(key)
        if raw is None:
            return None
        return decode_key_dir_entry(raw)

    def get_raw(self, key: str) -> bytes | None:
        return self._entries.get(key)

    def put(self, key: str, entry: bytes) -> None:
        self._entries[key] = entry

    def commit(self, pending: Iterable[tuple[str, bytes]]) -> int:
        """Apply pending (key, entry) updates in order. Returns how many were applied."""
        count = 0
        for key, entry in pending:
            self._entries[key] = entry
            count += 1
        return count

    def keys(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
