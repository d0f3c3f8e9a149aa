"""
Application-layer authenticated encryption for patient health data.

Demonstrates:
- AES-256-GCM (version 2) with a derived-key HMAC fallback (version 1)
- Fresh 12-byte IV per call, 16-byte tag, constant-time tag comparison
- Master key kept in a secret store, with an ephemeral degraded mode
- Strategy interface so callers never branch on crypto capability
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives import constant_time, hashes, hmac
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from pydantic import ValidationError

from clinic_safety.config import settings
from clinic_safety.schemas.security import EncryptedPayload, EncryptionStatus
from clinic_safety.services.exceptions import (
    CryptoError,
    DecryptionError,
    EncryptionError,
    IntegrityError,
    KeyGenerationError,
    SecretStoreUnavailable,
)
from clinic_safety.services.secrets import SecretStore, build_secret_store

logger = logging.getLogger(__name__)

KEY_LENGTH = 32
IV_LENGTH = 12
TAG_LENGTH = 16


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def _random_bytes(length: int) -> bytes:
    try:
        return os.urandom(length)
    except (NotImplementedError, OSError) as exc:
        raise KeyGenerationError("Secure random source unavailable") from exc


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode_strict(text: str) -> bytes:
    """Decode base64, rejecting anything that is not the canonical encoding."""
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except ValueError as exc:
        raise IntegrityError() from exc
    # Flipped padding bits decode to the same bytes; treat them as tampering too.
    if _b64encode(raw) != text:
        raise IntegrityError()
    return raw


def generate_key() -> str:
    """Return a fresh 32-byte key, base64 encoded."""
    return _b64encode(_random_bytes(KEY_LENGTH))


def hash_sensitive_data(data: str) -> str:
    """SHA-256 hex digest. For fingerprinting and content hashing, not passwords."""
    if not isinstance(data, str):
        raise TypeError("Data to hash must be a string")
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def generate_secure_id() -> str:
    """128 bits of CSPRNG output formatted 8-4-4-4-12."""
    return str(uuid.UUID(bytes=_random_bytes(16)))


# ---------------------------------------------------------------------------
# AEAD strategies
# ---------------------------------------------------------------------------

class AeadProvider(ABC):
    version: int
    algorithm: str

    @abstractmethod
    def seal(self, key: bytes, iv: bytes, plaintext: bytes) -> tuple[bytes, bytes]:
        """Return ``(ciphertext, tag)``."""

    @abstractmethod
    def open(self, key: bytes, iv: bytes, ciphertext: bytes, tag: bytes) -> bytes:
        """Return plaintext or raise :class:`IntegrityError`."""


class AesGcmProvider(AeadProvider):
    version = 2
    algorithm = "AES-256-GCM"

    def seal(self, key: bytes, iv: bytes, plaintext: bytes) -> tuple[bytes, bytes]:
        sealed = AESGCM(key).encrypt(iv, plaintext, None)
        return sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]

    def open(self, key: bytes, iv: bytes, ciphertext: bytes, tag: bytes) -> bytes:
        try:
            return AESGCM(key).decrypt(iv, ciphertext + tag, None)
        except InvalidTag as exc:
            raise IntegrityError() from exc


class DerivedKeyStreamProvider(AeadProvider):
    """
    Fallback for runtimes without a usable AES-GCM backend.

    Per-payload stream and MAC keys come from HKDF-SHA256 over the master key
    with the IV as salt. The keystream is HMAC-SHA256 in counter mode and the
    tag is HMAC-SHA256(mac_key, iv || ciphertext) truncated to 16 bytes.
    """

    version = 1
    algorithm = "HMAC-SHA256-XOR"
    _INFO = b"clinic-safety/v1/stream+mac"

    def _derive(self, key: bytes, iv: bytes) -> tuple[bytes, bytes]:
        material = HKDF(algorithm=hashes.SHA256(), length=64, salt=iv, info=self._INFO).derive(key)
        return material[:32], material[32:]

    @staticmethod
    def _keystream(stream_key: bytes, length: int) -> bytes:
        out = bytearray()
        counter = 0
        while len(out) < length:
            block = hmac.HMAC(stream_key, hashes.SHA256())
            block.update(counter.to_bytes(8, "big"))
            out.extend(block.finalize())
            counter += 1
        return bytes(out[:length])

    @staticmethod
    def _tag(mac_key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        mac = hmac.HMAC(mac_key, hashes.SHA256())
        mac.update(iv)
        mac.update(ciphertext)
        return mac.finalize()[:TAG_LENGTH]

    def _xor(self, stream_key: bytes, data: bytes) -> bytes:
        stream = self._keystream(stream_key, len(data))
        return bytes(a ^ b for a, b in zip(data, stream))

    def seal(self, key: bytes, iv: bytes, plaintext: bytes) -> tuple[bytes, bytes]:
        stream_key, mac_key = self._derive(key, iv)
        ciphertext = self._xor(stream_key, plaintext)
        return ciphertext, self._tag(mac_key, iv, ciphertext)

    def open(self, key: bytes, iv: bytes, ciphertext: bytes, tag: bytes) -> bytes:
        stream_key, mac_key = self._derive(key, iv)
        expected = self._tag(mac_key, iv, ciphertext)
        if not constant_time.bytes_eq(expected, tag):
            raise IntegrityError()
        return self._xor(stream_key, ciphertext)


@lru_cache(maxsize=1)
def native_aead_available() -> bool:
    """Check the cryptography backend once for AES-256-GCM support."""
    try:
        cipher = AESGCM(AESGCM.generate_key(bit_length=256))
        cipher.encrypt(os.urandom(IV_LENGTH), b"self-test", None)
    except UnsupportedAlgorithm:
        return False
    return True


def select_aead_provider(prefer_native: bool = True) -> AeadProvider:
    """Pick the provider used for new ciphertext. Run once at startup."""
    if prefer_native and native_aead_available():
        return AesGcmProvider()
    if prefer_native:
        logger.warning("AES-GCM unavailable on this platform; using HMAC-SHA256 fallback")
    return DerivedKeyStreamProvider()


# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------

class KeyManager:
    """
    Owns the master key for this process.

    The key is loaded from (or created in) the secret store on first use and
    then cached. If the store is unavailable an ephemeral key is generated,
    ``degraded`` is set, and a warning is logged: data written under that key
    is not recoverable after restart.
    """

    def __init__(self, store: SecretStore, alias: str = settings.ENCRYPTION_KEY_ALIAS):
        self._store = store
        self.alias = alias
        self.degraded = False
        self._key: str | None = None
        self._lock = threading.Lock()

    def get_or_create_key(self) -> str:
        with self._lock:
            if self._key is not None:
                return self._key
            try:
                key = self._store.get_secret(self.alias)
                if not key:
                    logger.info("Generating new encryption key for alias '%s'", self.alias)
                    key = generate_key()
                    self._store.set_secret(self.alias, key)
            except SecretStoreUnavailable:
                logger.warning(
                    "Secret store unavailable. A temporary in-memory encryption key "
                    "has been generated. Encrypted data will NOT be recoverable after "
                    "process restart."
                )
                key = generate_key()
                self.degraded = True
            self._key = key
            return key

    def has_stored_key(self) -> bool:
        try:
            return bool(self._store.get_secret(self.alias))
        except SecretStoreUnavailable:
            return False

    def rotate(self) -> str:
        """
        Replace the master key. Existing ciphertext is not re-encrypted.

        Raises SecretStoreUnavailable if the store cannot persist the new key;
        the current key stays in place.
        """
        with self._lock:
            new_key = generate_key()
            self._store.set_secret(self.alias, new_key)
            self._key = new_key
            self.degraded = False
        logger.info("Encryption key rotated for alias '%s'", self.alias)
        return new_key

    def key_bytes(self) -> bytes:
        try:
            raw = base64.b64decode(self.get_or_create_key(), validate=True)
        except ValueError as exc:
            raise EncryptionError("Master key is not valid base64") from exc
        if len(raw) != KEY_LENGTH:
            raise EncryptionError("Master key has invalid length")
        return raw


def build_key_manager() -> KeyManager:
    store = build_secret_store(settings.SECRET_STORE_BACKEND, settings.SECRET_STORE_PATH)
    return KeyManager(store, settings.ENCRYPTION_KEY_ALIAS)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class EncryptionService:
    """Encrypts strings into :class:`EncryptedPayload` and back."""

    def __init__(
        self,
        key_manager: KeyManager | None = None,
        provider: AeadProvider | None = None,
    ):
        self.key_manager = key_manager or build_key_manager()
        self.provider = provider or select_aead_provider(settings.PREFER_NATIVE_AEAD)

        # Every variant this runtime can read, so older payloads stay decryptable.
        self._providers: dict[int, AeadProvider] = {1: DerivedKeyStreamProvider()}
        if native_aead_available():
            self._providers[2] = AesGcmProvider()
        self._providers[self.provider.version] = self.provider

    def encrypt(self, plaintext: str) -> EncryptedPayload:
        if not isinstance(plaintext, str):
            raise TypeError("Plaintext must be a string")

        key = self.key_manager.key_bytes()
        iv = _random_bytes(IV_LENGTH)
        try:
            ciphertext, tag = self.provider.seal(key, iv, plaintext.encode("utf-8"))
        except CryptoError:
            raise
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise EncryptionError("Failed to encrypt sensitive data") from exc

        logger.debug("Data encrypted with %s", self.provider.algorithm)
        return EncryptedPayload(
            ciphertext=_b64encode(ciphertext),
            iv=_b64encode(iv),
            tag=_b64encode(tag),
            version=self.provider.version,
        )

    def decrypt(self, payload: EncryptedPayload | Mapping[str, Any]) -> str:
        if not isinstance(payload, EncryptedPayload):
            try:
                payload = EncryptedPayload.model_validate(payload)
            except ValidationError as exc:
                raise DecryptionError("Invalid encrypted data format") from exc

        provider = self._providers.get(payload.version)
        if provider is None:
            raise DecryptionError(f"Unsupported encrypted payload version: {payload.version}")

        iv = _b64decode_strict(payload.iv)
        ciphertext = _b64decode_strict(payload.ciphertext)
        tag = _b64decode_strict(payload.tag)
        if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH:
            raise IntegrityError()

        plaintext = provider.open(self.key_manager.key_bytes(), iv, ciphertext, tag)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError("Decrypted data is not valid UTF-8") from exc

    def status(self) -> EncryptionStatus:
        return EncryptionStatus(
            is_enabled=True,
            algorithm=self.provider.algorithm,
            key_generated=self.key_manager.has_stored_key(),
            degraded=self.key_manager.degraded,
        )

    def rotate_key(self) -> None:
        """
        Replace the master key.

        Disruptive: payloads encrypted under the previous key can no longer be
        decrypted. Do not run while other operations still need the old key.
        """
        self.key_manager.rotate()
        logger.warning("Previously encrypted payloads are no longer decryptable")
