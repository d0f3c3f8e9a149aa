"""
Error taxonomy for the encryption and storage layer.

Messages raised from this package never contain plaintext or key material.
The underlying cause is chained with ``raise ... from exc``.
"""


class CryptoError(Exception):
    """Base class for every encryption-layer failure."""


class KeyGenerationError(CryptoError):
    """The operating system CSPRNG could not produce key material."""


class EncryptionError(CryptoError):
    """Unexpected failure while producing ciphertext."""


class DecryptionError(CryptoError):
    """Malformed envelope, unsupported version, or provider failure on read."""


class IntegrityError(DecryptionError):
    """Authentication tag mismatch: the record was tampered with or corrupted."""

    def __init__(self, message: str = "Data integrity check failed - possible tampering detected"):
        super().__init__(message)


class SecretStoreUnavailable(CryptoError):
    """The OS-backed secret store cannot be read or written."""
