"""
Secure object store adapter.

Serializes any JSON-compatible value, encrypts it, and stores the resulting
envelope as a single opaque string. Records written before encryption was
introduced (plain JSON) are recognised by shape and re-encrypted on first
read.

Public API
----------
encrypt_object(value) -> str
decrypt_object(serialized) -> Any
is_encrypted_payload(raw) -> bool
SecureObjectStore(store, encryption).save / load / remove
"""

from __future__ import annotations

import json
import logging
from collections import deque
from typing import Any

from clinic_safety.schemas.documents import ENCRYPTED_PAYLOAD_SCHEMA
from clinic_safety.services.encryption import EncryptionService
from clinic_safety.services.exceptions import DecryptionError, EncryptionError
from clinic_safety.services.storage import KeyValueStore
from clinic_safety.services.validation import is_valid

logger = logging.getLogger(__name__)

# Only the most recent migrations are kept by key; migrated_count keeps the total.
MIGRATION_HISTORY = 100


def is_encrypted_payload(raw: Any) -> bool:
    """
    True when *raw* is the JSON text of an encryption envelope: an object with
    exactly ``ciphertext``, ``iv``, ``tag`` (strings) and ``version`` (integer).
    Never raises.
    """
    if not isinstance(raw, str) or not raw.strip():
        return False
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        return False
    return is_valid(parsed, ENCRYPTED_PAYLOAD_SCHEMA)


def encrypt_object(value: Any, encryption: EncryptionService) -> str:
    """
    JSON-serialize *value*, encrypt it, and return the envelope as JSON text.

    Raises:
        EncryptionError: *value* is not JSON-serializable.
    """
    if value is None:
        raise ValueError("Cannot encrypt a null value")
    try:
        plaintext = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError, RecursionError) as exc:
        raise EncryptionError(f"Value of type {type(value).__name__} is not JSON-serializable") from exc
    payload = encryption.encrypt(plaintext)
    return payload.model_dump_json()


def decrypt_object(serialized: str, encryption: EncryptionService) -> Any:
    """
    Reverse :func:`encrypt_object`.

    Raises:
        DecryptionError: malformed envelope or plaintext.
        IntegrityError: the tag does not verify (subclass of DecryptionError).
    """
    if not isinstance(serialized, str) or not serialized.strip():
        raise DecryptionError("Encrypted string cannot be empty")
    try:
        envelope = json.loads(serialized)
    except (ValueError, RecursionError) as exc:
        raise DecryptionError("Encrypted envelope is not valid JSON") from exc
    if not is_valid(envelope, ENCRYPTED_PAYLOAD_SCHEMA):
        raise DecryptionError("Encrypted envelope has an unexpected shape")

    plaintext = encryption.decrypt(envelope)
    try:
        return json.loads(plaintext)
    except (ValueError, RecursionError) as exc:
        raise DecryptionError("Decrypted data is not valid JSON") from exc


class SecureObjectStore:
    """Encrypting facade over a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore, encryption: EncryptionService):
        self.store = store
        self.encryption = encryption
        self.migrated_keys: deque[str] = deque(maxlen=MIGRATION_HISTORY)
        self.migrated_count = 0

    def save(self, key: str, value: Any) -> None:
        self.store.set_item(key, encrypt_object(value, self.encryption))

    def load(self, key: str) -> Any:
        """
        Return the decrypted value for *key*, or ``None`` if absent.

        A legacy plaintext JSON record is returned as-is and rewritten in
        encrypted form; its key is appended to ``migrated_keys`` and
        ``migrated_count`` is incremented.
        """
        raw = self.store.get_item(key)
        if raw is None:
            return None
        if is_encrypted_payload(raw):
            return decrypt_object(raw, self.encryption)

        try:
            value = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            raise DecryptionError(f"Record '{key}' is neither encrypted nor valid JSON") from exc
        if value is not None:
            self.save(key, value)
            self.migrated_keys.append(key)
            self.migrated_count += 1
            logger.info("Migrated legacy plaintext record '%s' to encrypted storage", key)
        return value

    def remove(self, key: str) -> None:
        self.store.remove_item(key)
