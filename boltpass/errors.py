"""
Exceptions raised by the BoltPass persistence layer.
"""


class VaultError(Exception):
    """Base class for all vault storage errors."""


class EncodingError(VaultError):
    """A snapshot could not be serialized before encryption.

    This is a programming-contract violation (a non-serializable record),
    not a condition worth retrying.
    """


class DecodingError(VaultError):
    """A blob is not valid under the current secret and could not be parsed."""


class UnderlyingStoreError(VaultError):
    """The key-value backend failed to get, put or delete a value."""
