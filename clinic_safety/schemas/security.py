"""Pydantic models for the encryption layer and biometric helpers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr


class EncryptedPayload(BaseModel):
    """
    One authenticated-encryption result, exactly as persisted.

    All byte fields are standard base64. ``version`` selects the algorithm
    that produced the record: 1 = derived-key stream + HMAC tag,
    2 = AES-256-GCM.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    ciphertext: StrictStr
    iv: StrictStr
    tag: StrictStr
    version: StrictInt


class EncryptionStatus(BaseModel):
    is_enabled: bool = True
    algorithm: str
    key_generated: bool
    degraded: bool = False


class BiometricFingerprint(BaseModel):
    hash: str
    nonce: str
    captured_at: datetime
