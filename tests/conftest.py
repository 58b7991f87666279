"""
Shared pytest fixtures for the BoltPass test suite.

Stores here record every write so tests can assert on how many writes a
burst of store() calls produced and what each one contained.
"""

import threading

import pytest

from boltpass.backends import MemoryStore
from boltpass.codec import SnapshotCodec
from boltpass.storage import SecureStorage

FAST_DEBOUNCE = 0.02


class RecordingStore(MemoryStore):
    """MemoryStore that keeps every value passed to put()."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.puts = []

    def put(self, key, value):
        self.puts.append(value)
        super().put(key, value)


class GatedStore(RecordingStore):
    """RecordingStore whose put() blocks until ``release`` is set.

    ``started`` is set as soon as a put begins, so a test can act while a
    write is in flight.
    """

    def __init__(self, initial=None):
        super().__init__(initial)
        self.started = threading.Event()
        self.release = threading.Event()

    def put(self, key, value):
        self.started.set()
        if not self.release.wait(timeout=5):
            raise TimeoutError("GatedStore was never released")
        super().put(key, value)


class FailingStore(MemoryStore):
    """Store whose writes and deletes always fail."""

    def put(self, key, value):
        raise OSError("quota exceeded")

    def delete(self, key):
        raise OSError("store unavailable")


@pytest.fixture
def codec():
    return SnapshotCodec()


@pytest.fixture
def backend():
    return RecordingStore()


@pytest.fixture
def storage(backend, codec):
    return SecureStorage(backend=backend, codec=codec, debounce_delay=FAST_DEBOUNCE)


@pytest.fixture
def sample_records():
    return [
        {"id": "a1", "username": "alice", "password": "s3cret!", "notes": "", "created_at": "2025-01-01T10:00:00"},
        {"id": "b2", "username": "bob", "password": "hunter2", "notes": "work laptop", "created_at": "2025-01-02T11:30:00"},
    ]
