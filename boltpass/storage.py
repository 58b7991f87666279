"""
Storage management for the credential vault.

SecureStorage keeps one encrypted snapshot of the credential list under a
single key. Writes are debounced: a burst of store() calls produces one
write of the most recent snapshot, and at most one write is in flight at a
time. Snapshots queued while a write is running are written as soon as it
completes.
"""

import asyncio
import datetime
import logging
import uuid
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Iterable, Optional, Union

from . import config
from .backends import KeyValueStore, MemoryStore
from .codec import Snapshot, SnapshotCodec, dumps_plain, loads_plain
from .errors import DecodingError, UnderlyingStoreError

logger = logging.getLogger(__name__)


@dataclass
class Credential:
    """Represents a single stored credential."""
    id: str
    username: str
    password: str
    notes: str = ""
    created_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Credential':
        """Create from dictionary, ignoring fields this version does not know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def new(cls, username: str, password: str, notes: str = "") -> 'Credential':
        """Create a credential with a fresh id and the current timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            username=username,
            password=password,
            notes=notes,
            created_at=datetime.datetime.now().isoformat()
        )


Record = Union[Credential, Dict[str, Any]]


class SecureStorage:
    """Debounced, encrypted persistence of a credential snapshot."""

    IDLE = "idle"
    PENDING = "pending"
    WRITING = "writing"
    PENDING_WHILE_WRITING = "pending_while_writing"

    def __init__(
        self,
        backend: Optional[KeyValueStore] = None,
        key: str = config.STORAGE_KEY,
        codec: Optional[SnapshotCodec] = None,
        debounce_delay: float = config.DEBOUNCE_DELAY_SECONDS,
    ):
        """
        Initialize storage.
        Args:
            backend: Key-value store owning the persisted blob; in-memory if omitted
            key: Key the blob is stored under
            codec: Codec used to encrypt snapshots; built from the application secret if omitted
            debounce_delay: Seconds to wait after the last store() before writing
        """
        self.backend = backend if backend is not None else MemoryStore()
        self.key = key
        self.codec = codec if codec is not None else SnapshotCodec()
        self.debounce_delay = debounce_delay
        self._queue: Optional[Snapshot] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._write_task: Optional[asyncio.Task] = None

    async def __aenter__(self) -> 'SecureStorage':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.flush()

    @property
    def state(self) -> str:
        """Current coalescer state: idle, pending, writing or pending_while_writing."""
        if self._write_task is not None:
            return self.PENDING_WHILE_WRITING if self._queue is not None else self.WRITING
        return self.PENDING if self._queue is not None else self.IDLE

    def store(self, snapshot: Iterable[Record]) -> None:
        """
        Queue a snapshot for writing. Never blocks; the latest call wins.

        Outside a running event loop the snapshot stays queued until flush().
        """
        self._queue = [r.to_dict() if isinstance(r, Credential) else r for r in snapshot]
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; snapshot stays queued until flush()")
            return
        self._timer = loop.call_later(self.debounce_delay, self._on_timer)

    def retrieve(self) -> Snapshot:
        """
        Read the durable snapshot.

        Never raises: an unreadable store or a blob that is neither encrypted
        under the current secret nor legacy plain JSON yields an empty list.
        A legacy blob is returned and queued to be rewritten encrypted.
        """
        try:
            stored = self.backend.get(self.key)
        except Exception as e:
            logger.error(f"Error retrieving credentials: {e}", exc_info=True)
            return []

        if not stored:
            return []

        try:
            return self.codec.decrypt(stored)
        except DecodingError as e:
            logger.warning(f"Could not decrypt data, trying legacy format: {e}")

        try:
            legacy = loads_plain(stored)
        except DecodingError as e:
            # Leave the blob in place for manual recovery
            logger.error(f"Failed to parse legacy data: {e}")
            return []

        logger.info("Migrating from legacy unencrypted format")
        self.store(legacy)
        return legacy

    def clear(self) -> None:
        """
        Drop any queued snapshot and delete the persisted blob.

        A write already in flight is not cancelled and may land afterwards.
        """
        self._cancel_timer()
        self._queue = None
        try:
            self.backend.delete(self.key)
        except Exception as e:
            logger.error(f"Error clearing credentials: {e}", exc_info=True)

    async def flush(self) -> None:
        """
        Write any queued snapshot now and wait until nothing is pending.

        Raises:
            EncodingError: If the last write waited on could not serialize its snapshot
            UnderlyingStoreError: If the last write waited on failed in the backend
        """
        self._cancel_timer()
        error = None
        while self._write_task is not None or self._queue is not None:
            if self._write_task is None:
                self._drain()
            task = self._write_task
            await asyncio.wait({task})
            error = None if task.cancelled() else task.exception()
        if error is not None:
            raise error

    def export_snapshot(self) -> str:
        """Return the durable snapshot in its plain JSON form."""
        return dumps_plain(self.retrieve())

    def import_snapshot(self, data: str) -> bool:
        """
        Queue a snapshot parsed from export_snapshot() output.

        Returns:
            True if data held a JSON array and was queued, False otherwise
        """
        try:
            records = loads_plain(data)
        except DecodingError as e:
            logger.error(f"Import error: {e}")
            return False
        self.store(records)
        return True

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._drain()

    def _drain(self) -> None:
        # In flight: the completion callback drains again
        if self._write_task is not None or self._queue is None:
            return
        self._cancel_timer()
        snapshot = self._queue
        self._queue = None
        self._write_task = asyncio.get_running_loop().create_task(self._write(snapshot))
        self._write_task.add_done_callback(self._on_write_done)

    async def _write(self, snapshot: Snapshot) -> None:
        blob = self.codec.encrypt(snapshot)
        try:
            await asyncio.to_thread(self.backend.put, self.key, blob)
        except UnderlyingStoreError:
            raise
        except Exception as e:
            raise UnderlyingStoreError(f"Error writing {self.key}: {e}") from e
        logger.debug(f"Saved {len(snapshot)} credentials")

    def _on_write_done(self, task: asyncio.Task) -> None:
        if self._write_task is task:
            self._write_task = None
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Error saving credentials: {task.exception()}")
        if self._queue is not None:
            self._drain()
