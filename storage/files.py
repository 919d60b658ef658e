"""Filesystem helpers."""

import os
import stat
from pathlib import Path

from exceptions import FileCheckError


def file_exists(path: Path | str) -> bool:
    """Return True if ``path`` is an existing regular file.

    A missing path is False. Any other stat failure (permissions, a path
    component that is not a directory, ...) raises FileCheckError instead of
    being reported as "does not exist".
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        raise FileCheckError(f"Error checking if file exists: {path}") from e
    return stat.S_ISREG(st.st_mode)
