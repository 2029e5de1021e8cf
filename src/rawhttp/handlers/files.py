"""
=============================================================================
FILE STORE
=============================================================================

Directory-scoped access to the served directory used by /files/<name>.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   GET  /files/notes.txt   →  store.read("notes.txt")                │
    │   POST /files/notes.txt   →  store.write("notes.txt", body)         │
    │                                                                      │
    │   root = /srv/files                                                  │
    │   "notes.txt"        → /srv/files/notes.txt        OK               │
    │   "sub/notes.txt"    → /srv/files/sub/notes.txt    OK               │
    │   "../etc/passwd"    → /srv/etc/passwd             REFUSED          │
    └─────────────────────────────────────────────────────────────────────┘

Failures:
- missing file                → FileNotFoundError (caller answers 404)
- name escapes the root       → PathOutsideRootError
- any other OS error          → FileStoreError

=============================================================================
"""

import logging
import os
from pathlib import Path
from typing import Union

from ..errors import FileStoreError, PathOutsideRootError


logger = logging.getLogger(__name__)

# Permission bits for files created by write(); existing files keep theirs
FILE_MODE = 0o755


class FileStore:
    """
    Reads and writes files below a single root directory.

    The root is resolved once at construction. The store keeps no other
    state, so one instance is shared by all worker threads.
    """

    def __init__(self, root: Union[str, Path] = ""):
        self.root = Path(root or os.getcwd()).resolve()

    def _resolve(self, name: str) -> Path:
        """
        Map a file name to a path inside the root.

        Raises:
            PathOutsideRootError: If the name resolves outside the root.
            FileStoreError: If the name cannot be resolved at all.
        """
        try:
            path = (self.root / name.lstrip("/")).resolve()
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte
            raise FileStoreError(f"invalid file name {name!r}: {e}") from e

        try:
            path.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {name}")
            raise PathOutsideRootError(f"file name escapes served directory: {name}") from None
        return path

    def exists(self, name: str) -> bool:
        """
        Check whether ``name`` exists below the root.

        Raises:
            FileStoreError: If the file cannot be stat'ed for another reason.
        """
        path = self._resolve(name)
        try:
            path.stat()
        except FileNotFoundError:
            return False
        except (OSError, ValueError) as e:
            raise FileStoreError(f"error getting file {name}: {e}") from e
        return True

    def read(self, name: str) -> bytes:
        """
        Return the full contents of ``name``.

        Raises:
            FileNotFoundError: The file does not exist.
            FileStoreError: Any other read failure (a directory, permissions).
        """
        path = self._resolve(name)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise
        except (OSError, ValueError) as e:
            raise FileStoreError(f"error reading file {name}: {e}") from e

    def write(self, name: str, data: bytes) -> None:
        """
        Create or overwrite ``name`` with ``data``.

        Raises:
            FileStoreError: The file could not be written.
        """
        path = self._resolve(name)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except (OSError, ValueError) as e:
            raise FileStoreError(f"error writing file {name}: {e}") from e
