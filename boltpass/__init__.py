"""
BoltPass Vault
Copyright (c) 2025

THREAT MODEL:
Credentials are encrypted with a key derived from a secret that ships with
the application. This keeps the stored blob unreadable to casual inspection
only; anyone able to run the application can decrypt it.
"""

from .config import APP_VERSION as __version__
from .errors import VaultError, EncodingError, DecodingError, UnderlyingStoreError
from .storage import Credential, SecureStorage

__all__ = [
    "__version__",
    "Credential",
    "SecureStorage",
    "VaultError",
    "EncodingError",
    "DecodingError",
    "UnderlyingStoreError",
]
