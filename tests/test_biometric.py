"""Tests for biometric capture hashing."""

import hashlib
from datetime import datetime, timezone

import pytest

from clinic_safety.services import biometric
from clinic_safety.services.biometric import capture_digest, fingerprint_capture


def test_capture_digest_is_deterministic():
    assert capture_digest("file:///scan.jpg") == capture_digest("file:///scan.jpg")
    assert capture_digest("file:///scan.jpg") == hashlib.sha256(b"file:///scan.jpg").hexdigest()


def test_fingerprint_uses_uri_time_and_nonce(monkeypatch):
    monkeypatch.setattr(biometric, "generate_secure_id", lambda: "nonce-1")
    captured = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    fp = fingerprint_capture("file:///scan.jpg", captured)

    expected = hashlib.sha256(f"file:///scan.jpg_{int(captured.timestamp() * 1000)}_nonce-1".encode()).hexdigest()
    assert fp.hash == expected
    assert fp.nonce == "nonce-1"
    assert fp.captured_at == captured


def test_fingerprints_are_salted():
    captured = datetime(2025, 1, 2, tzinfo=timezone.utc)
    first = fingerprint_capture("file:///scan.jpg", captured)
    second = fingerprint_capture("file:///scan.jpg", captured)

    assert first.hash != second.hash
    assert "scan.jpg" not in first.hash


def test_empty_inputs_rejected():
    with pytest.raises(ValueError):
        capture_digest("")
    with pytest.raises(ValueError):
        fingerprint_capture("")
