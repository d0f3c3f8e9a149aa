"""Tests for PII redaction."""

import logging
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from clinic_safety.services.redaction import (
    log_sanitized,
    redact_identifier,
    redact_text,
    sanitize_for_log,
)


@pytest.mark.parametrize(
    "text",
    [
        "call 555-123-4567 today",
        "call (555) 123-4567 today",
        "intl +1 555 123 4567",
        "digits 155512345678",
        "mail jane.doe@example.com",
        "ssn 123-45-6789",
        "id 123456789",
    ],
)
def test_redact_text_patterns(text):
    redacted = redact_text(text)

    assert "[REDACTED]" in redacted
    assert not any(ch.isdigit() for ch in redacted.split("[REDACTED]")[-1][:4])
    assert "example.com" not in redacted


def test_long_strings_replaced_entirely():
    assert redact_text("x" * 101) == "[REDACTED: 101 chars]"
    assert redact_text("x" * 100) == "x" * 100


def test_iso_dates_untouched():
    value = "2025-01-01T00:00:00+00:00 to 2025-12-31T00:00:00+00:00"
    assert redact_text(value) == value


def test_sanitize_nested():
    data = {
        "patientName": "Jane Doe",
        "Phone": "555-123-4567",
        "apiKey": "abc",
        "notes": ["reach me at 155512345678", {"providerSignature": "JD"}],
        "count": 3,
        "treatment": "Morpheus8",
    }

    result = sanitize_for_log(data)

    assert result["patientName"] == "[REDACTED]"
    assert result["Phone"] == "[REDACTED]"
    assert result["apiKey"] == "[REDACTED]"
    assert "155512345678" not in result["notes"][0]
    assert result["notes"][1] == {"providerSignature": "[REDACTED]"}
    assert result["count"] == 3
    assert result["treatment"] == "Morpheus8"
    # Input untouched.
    assert data["patientName"] == "Jane Doe"


class _Contact(BaseModel):
    email: str
    note: str


@dataclass
class _Callback:
    number: str


def test_sanitize_walks_sets_models_and_dataclasses():
    result = sanitize_for_log(
        {
            "contacts": frozenset({"555-123-4567"}),
            "contact": _Contact(email="jane@example.com", note="call 555-123-4567"),
            "callback": _Callback(number="555-987-6543"),
        }
    )

    assert result["contacts"] == ["[REDACTED]"]
    assert result["contact"] == {"email": "[REDACTED]", "note": "call [REDACTED]"}
    assert result["callback"] == {"number": "[REDACTED]"}


def test_redact_identifier():
    assert redact_identifier("patient-000123456", "USER") == "[USER:123456]"
    assert redact_identifier("abc", "ID") == "[ID:abc]"
    assert redact_identifier(None, "ID") is None
    assert redact_identifier("", "ID") is None


def test_log_sanitized(caplog):
    logger = logging.getLogger("clinic_safety.tests")
    with caplog.at_level(logging.INFO, logger="clinic_safety.tests"):
        log_sanitized(logger, "Lead captured", {"email": "a@b.co", "score": 88})
        log_sanitized(logger, "No data")

    assert "a@b.co" not in caplog.text
    assert "'score': 88" in caplog.text
    assert "No data" in caplog.text
