"""One-way hashing of biometric capture artifacts (face scans, photos)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from clinic_safety.schemas.security import BiometricFingerprint
from clinic_safety.services.encryption import generate_secure_id, hash_sensitive_data

logger = logging.getLogger(__name__)


def capture_digest(artifact: str) -> str:
    """Deterministic SHA-256 of a capture artifact, used as a lookup key."""
    if not artifact:
        raise ValueError("Capture artifact cannot be empty")
    return hash_sensitive_data(artifact)


def fingerprint_capture(image_uri: str, captured_at: datetime | None = None) -> BiometricFingerprint:
    """
    Salted, non-reversible fingerprint of a single capture.

    The same image captured twice yields different hashes; the raw URI is
    never stored or logged.
    """
    if not image_uri:
        raise ValueError("Image URI cannot be empty")

    captured_at = captured_at or datetime.now(timezone.utc)
    if captured_at.tzinfo is None:
        captured_at = captured_at.replace(tzinfo=timezone.utc)

    nonce = generate_secure_id()
    epoch_ms = int(captured_at.timestamp() * 1000)
    digest = hash_sensitive_data(f"{image_uri}_{epoch_ms}_{nonce}")

    logger.debug("Biometric capture fingerprinted")
    return BiometricFingerprint(hash=digest, nonce=nonce, captured_at=captured_at)
