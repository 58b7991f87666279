"""
Cryptographic operations for the BoltPass vault.

The storage key is derived from a secret compiled into the application, so
encryption here protects the stored blob from casual inspection, not from
someone who can run the application.
"""

import os
import functools
from typing import Tuple
from argon2.low_level import hash_secret_raw, Type
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend

from . import config


@functools.lru_cache(maxsize=8)
def _derive_key_cached(secret: str, salt: bytes) -> bytes:
    return hash_secret_raw(
        secret=secret.encode('utf-8'),
        salt=salt,
        time_cost=config.ARGON2_TIME_COST,
        memory_cost=config.ARGON2_MEMORY_COST,
        parallelism=config.ARGON2_PARALLELISM,
        hash_len=config.KEY_SIZE,
        type=Type.ID
    )


class CryptoManager:
    """Handles all cryptographic operations for the vault."""

    KEY_SIZE = config.KEY_SIZE
    NONCE_SIZE = config.NONCE_SIZE
    TAG_SIZE = config.TAG_SIZE

    def __init__(self):
        """Initialize the crypto manager."""
        self.backend = default_backend()

    def derive_key(self, secret: str, salt: bytes = config.KEY_SALT) -> bytes:
        """
        Derive an encryption key from the application secret using Argon2id.

        Derivation is memoized per (secret, salt); the secret is fixed at
        build time so every codec in a process shares one key.

        Args:
            secret: The application secret
            salt: Salt for key derivation

        Returns:
            32-byte encryption key
        """
        return _derive_key_cached(secret, salt)

    def encrypt(self, plaintext: bytes, key: bytes) -> Tuple[bytes, bytes, bytes]:
        """
        Encrypt data using AES-256-GCM.

        Args:
            plaintext: Data to encrypt
            key: 32-byte encryption key

        Returns:
            Tuple of (ciphertext, nonce, tag)
        """
        nonce = os.urandom(self.NONCE_SIZE)
        cipher = Cipher(
            algorithms.AES(key),
            modes.GCM(nonce),
            backend=self.backend
        )
        encryptor = cipher.encryptor()
        ciphertext = encryptor.update(plaintext) + encryptor.finalize()
        return ciphertext, nonce, encryptor.tag

    def decrypt(self, ciphertext: bytes, key: bytes, nonce: bytes, tag: bytes) -> bytes:
        """
        Decrypt data using AES-256-GCM.

        Args:
            ciphertext: Encrypted data
            key: 32-byte encryption key
            nonce: Nonce used for encryption
            tag: Authentication tag

        Returns:
            Decrypted plaintext

        Raises:
            InvalidTag: If authentication fails
            ValueError: If the nonce or tag has an invalid size
        """
        cipher = Cipher(
            algorithms.AES(key),
            modes.GCM(nonce, tag),
            backend=self.backend
        )
        decryptor = cipher.decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()

