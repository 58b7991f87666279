"""
Configuration constants for the BoltPass vault.
"""

import os

# Application Metadata
APP_VERSION = "2.0.0"  # Use: Current version of the package. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "BoltPass Vault"  # Use: Full name of the application. Type: str. Range: Any valid string.

# Storage Settings
STORAGE_KEY = "boltpass_credentials"  # Use: The single key under which the encrypted snapshot is persisted. Type: str. Range: Any key accepted by the backend.
DEBOUNCE_DELAY_SECONDS = 0.3  # Use: Delay after the last store() call before a write is attempted. Type: float. Range: Hundreds of milliseconds; long enough to coalesce rapid edits, short enough to feel instant.

# Security Settings
ENCRYPTION_SECRET = "boltpass_v2_secure_storage"  # Use: Build-time secret the storage key is derived from. Changing it invalidates every stored blob. Type: str. Range: Any non-empty string.
KEY_SALT = b"boltpass.storage.v2"  # Use: Fixed salt for deriving the storage key from ENCRYPTION_SECRET. Type: bytes. Range: At least 8 bytes (Argon2 minimum).
KEY_SIZE = 32  # Use: Size of the encryption key in bytes. Corresponds to AES-256. Type: int. Range: 16 (AES-128), 24 (AES-192), or 32 (AES-256) bytes.
NONCE_SIZE = 12  # Use: Size of the Nonce (Number used once) in bytes for AES-GCM. Type: int. Range: 12 bytes (96 bits) is the recommended size for GCM.
TAG_SIZE = 16  # Use: Size of the authentication tag in bytes for AES-GCM. Type: int. Range: 16 bytes (128 bits) is the recommended size for GCM.
ARGON2_TIME_COST = 2  # Use: Argon2id time cost parameter. Controls the number of iterations. Type: int. Range: Typically 1 to 10.
ARGON2_MEMORY_COST = 65536  # Use: Argon2id memory cost parameter in KiB. Type: int. Range: Recommended to be at least 65536 (64 MB).
ARGON2_PARALLELISM = 4  # Use: Argon2id parallelism parameter. Type: int. Range: Typically 1 to 8.

# Blob Format
BLOB_MAGIC = b"BPV1"  # Use: Magic bytes at the start of every encrypted blob. Type: bytes. Range: Exactly 4 bytes.
BLOB_VERSION = 1  # Use: Version of the encrypted blob framing. Type: int. Range: Positive integer.

# File and Directory Names
CONFIG_DIR_NAME = ".boltpass"  # Use: Name of the hidden directory within the user's home directory where BoltPass keeps its data. Type: str. Range: Any valid directory name.
STORE_DIR_NAME = "store"  # Use: Sub-directory of CONFIG_DIR_NAME holding the file-backed key-value store. Type: str. Range: Any valid directory name.
DEFAULT_STORE_DIR = os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME, STORE_DIR_NAME)  # Use: Default location of the file-backed store. Type: str. Range: Derived value.

# Logging
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'  # Use: Format string passed to logging.basicConfig by the CLI. Type: str. Range: Any logging format string.

# Diagnostics Settings
DIAGNOSTICS_STORAGE_COUNT = 100  # Use: Number of credentials stored by the storage performance test. Type: int. Range: Positive integer.
DIAGNOSTICS_BATCH_SIZE = 10  # Use: Credentials per batch in the batch operations test. Type: int. Range: Positive integer.
DIAGNOSTICS_BATCH_COUNT = 5  # Use: Number of batches in the batch operations test. Type: int. Range: Positive integer.
