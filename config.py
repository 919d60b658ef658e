"""Store configuration."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

# set_many syncs and commits to the key directory once this many bytes
# have been appended since the last sync
DEFAULT_BATCH_FLUSH_BYTES = 100_000


class StoreConfig(BaseModel):
    """Tunable parameters for a TmpDB instance.

    Fields:
        path: Location of the log file. Must not exist before initialize().
        batch_flush_bytes: Byte threshold at which set_many syncs the file
            and commits its pending key directory entries.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    batch_flush_bytes: int = DEFAULT_BATCH_FLUSH_BYTES

    @field_validator("batch_flush_bytes")
    @classmethod
    def validate_batch_flush_bytes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"batch_flush_bytes must be positive, got {v}")
        return v
