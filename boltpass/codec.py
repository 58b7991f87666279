"""
Encryption codec for vault snapshots.

A snapshot is serialized to canonical JSON, encrypted with AES-256-GCM and
framed the same way the vault file header is laid out: magic bytes, a
version, then length-prefixed nonce, tag and ciphertext. The frame is
base64-encoded so it can live in a string-valued key-value store.
"""

import base64
import binascii
import json
import struct
from typing import Any, Dict, List, Tuple

from cryptography.exceptions import InvalidTag

from . import config
from .crypto import CryptoManager
from .errors import EncodingError, DecodingError

Snapshot = List[Dict[str, Any]]


def dumps_plain(snapshot: Snapshot) -> str:
    """
    Serialize a snapshot to its canonical plain JSON form.

    Raises:
        EncodingError: If the snapshot is not a list or holds values JSON
            cannot represent
    """
    if not isinstance(snapshot, list):
        raise EncodingError(f"Snapshot must be a list, got {type(snapshot).__name__}")
    try:
        return json.dumps(snapshot, separators=(',', ':'), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Snapshot is not serializable: {e}") from e


def loads_plain(text: str) -> Snapshot:
    """
    Parse the canonical plain JSON form of a snapshot.

    Raises:
        DecodingError: If the text is not JSON or is not a JSON array
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DecodingError(f"Not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise DecodingError(f"Expected a JSON array, got {type(data).__name__}")
    return data


class SnapshotCodec:
    """Converts snapshots to and from opaque encrypted blobs."""

    MAGIC_BYTES = config.BLOB_MAGIC
    VERSION = config.BLOB_VERSION

    def __init__(self, secret: str = config.ENCRYPTION_SECRET, salt: bytes = config.KEY_SALT):
        """
        Initialize the codec.
        Args:
            secret: Secret the encryption key is derived from
            salt: Salt for the key derivation
        """
        self.crypto = CryptoManager()
        self._key = self.crypto.derive_key(secret, salt)

    def encrypt(self, snapshot: Snapshot) -> str:
        """
        Serialize and encrypt a snapshot.

        Returns:
            Base64 blob

        Raises:
            EncodingError: If the snapshot cannot be serialized
        """
        try:
            plaintext = dumps_plain(snapshot).encode('utf-8')
        except UnicodeEncodeError as e:
            raise EncodingError(f"Snapshot is not valid UTF-8 text: {e}") from e
        ciphertext, nonce, tag = self.crypto.encrypt(plaintext, self._key)

        frame = bytearray(self.MAGIC_BYTES)
        frame += struct.pack('<I', self.VERSION)
        for part in (nonce, tag, ciphertext):
            frame += struct.pack('<I', len(part))
            frame += part
        return base64.b64encode(bytes(frame)).decode('ascii')

    def decrypt(self, blob: str) -> Snapshot:
        """
        Decrypt and parse a blob produced by encrypt().

        Raises:
            DecodingError: If the blob was not produced under the current
                secret, is corrupted, or does not hold a snapshot
        """
        nonce, tag, ciphertext = self._unframe(blob)
        try:
            plaintext = self.crypto.decrypt(ciphertext, self._key, nonce, tag)
        except (InvalidTag, ValueError) as e:
            raise DecodingError("Blob failed authentication under the current secret") from e

        try:
            text = plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodingError("Decrypted blob is not UTF-8") from e
        return loads_plain(text)

    def _unframe(self, blob: str) -> Tuple[bytes, bytes, bytes]:
        if not isinstance(blob, str):
            raise DecodingError(f"Blob must be a string, got {type(blob).__name__}")
        try:
            raw = base64.b64decode(blob.encode('ascii'), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise DecodingError("Blob is not base64") from e

        magic = raw[:4]
        if magic != self.MAGIC_BYTES:
            raise DecodingError(f"Magic bytes mismatch. Expected {self.MAGIC_BYTES}, got {magic}")

        offset = 4
        version, offset = self._read_u32(raw, offset)
        if version != self.VERSION:
            raise DecodingError(f"Version mismatch. Expected {self.VERSION}, got {version}")

        parts = []
        for _ in range(3):
            size, offset = self._read_u32(raw, offset)
            part = raw[offset:offset + size]
            if len(part) != size:
                raise DecodingError("Blob is truncated")
            parts.append(part)
            offset += size
        if offset != len(raw):
            raise DecodingError("Trailing bytes after ciphertext")
        return parts[0], parts[1], parts[2]

    @staticmethod
    def _read_u32(raw: bytes, offset: int) -> Tuple[int, int]:
        try:
            (value,) = struct.unpack_from('<I', raw, offset)
        except struct.error as e:
            raise DecodingError("Blob is truncated") from e
        return value, offset + 4

