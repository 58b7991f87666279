"""
Key-value stores the vault persists its blob into.

The vault only needs one slot: ``get`` a string (or nothing), ``put`` a
string, ``delete`` it. Backends raise UnderlyingStoreError when the medium
itself fails.
"""

import os
import shutil
import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .errors import UnderlyingStoreError
from .utils import set_owner_only_permissions

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value under key, or None when absent."""

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""


class MemoryStore(KeyValueStore):
    """Dict-backed store; contents die with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class FileStore(KeyValueStore):
    """Stores each key as a file under a directory."""

    def __init__(self, directory: str):
        """
        Initialize the file store.
        Args:
            directory: Directory holding one file per key; created on first write
        """
        self.directory = directory

    def _path(self, key: str) -> str:
        if not key or os.sep in key or (os.altsep and os.altsep in key) or key in ('.', '..'):
            raise ValueError(f"Invalid store key: {key!r}")
        return os.path.join(self.directory, key)

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise UnderlyingStoreError(f"Error reading {path}: {e}") from e

    def put(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = path + '.tmp'
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(value)

            # Atomic replace using shutil.move
            shutil.move(tmp_path, path)
        except OSError as e:
            logger.error(f"Error writing store file {path}: {e}", exc_info=True)
            try:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
            except OSError as cleanup_error:
                logger.warning(f"Could not remove temporary file {tmp_path}: {cleanup_error}")
            raise UnderlyingStoreError(f"Error writing {path}: {e}") from e

        # Value has landed; permission failures are only logged
        try:
            secured = set_owner_only_permissions(path)
        except OSError as e:
            logger.warning(f"Error setting permissions on {path}: {e}")
            secured = False
        if not secured:
            logger.warning(f"Failed to set secure file permissions for {path}.")

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise UnderlyingStoreError(f"Error deleting {path}: {e}") from e
