"""
PII redaction for audit details and diagnostic logging.

Redaction is irreversible: values are replaced before they are persisted or
written to a log handler.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any

from pydantic import BaseModel

REDACTED = "[REDACTED]"
MAX_STRING_LENGTH = 100

# Matched case-insensitively as substrings of the key, so "patientName",
# "providerSignature" and "apiKey" are all caught.
SENSITIVE_KEYS = (
    "phone",
    "email",
    "ssn",
    "dob",
    "dateofbirth",
    "address",
    "signature",
    "password",
    "token",
    "key",
    "secret",
    "credential",
    "name",
    "firstname",
    "lastname",
)

SENSITIVE_PATTERNS = (
    # phone numbers, optionally with a country code
    re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b"),
    re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    # SSN
    re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b"),
    re.compile(r"\b\d{9}\b"),
)


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def redact_text(value: str) -> str:
    if len(value) > MAX_STRING_LENGTH:
        return f"[REDACTED: {len(value)} chars]"
    for pattern in SENSITIVE_PATTERNS:
        value = pattern.sub(REDACTED, value)
    return value


def sanitize_for_log(data: Any) -> Any:
    """Deep-copy *data* with sensitive keys and values redacted."""
    if data is None:
        return None
    if isinstance(data, str):
        return redact_text(data)
    if isinstance(data, BaseModel):
        return sanitize_for_log(data.model_dump(mode="json"))
    if isinstance(data, (list, tuple)):
        return [sanitize_for_log(item) for item in data]
    if isinstance(data, (set, frozenset)):
        # sorted by repr so the persisted order is stable
        return [sanitize_for_log(item) for item in sorted(data, key=repr)]
    if isinstance(data, dict):
        return {
            key: REDACTED if is_sensitive_key(str(key)) else sanitize_for_log(value)
            for key, value in data.items()
        }
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return sanitize_for_log(dataclasses.asdict(data))
    if isinstance(data, (bool, int, float)):
        return data
    # anything else would be stringified on the way to storage
    return redact_text(str(data))


def redact_identifier(value: str | None, label: str) -> str | None:
    """Keep only the last six characters: ``[USER:ab12cd]``."""
    if not value:
        return None
    return f"[{label}:{value[-6:]}]"


def log_sanitized(logger: logging.Logger, message: str, data: Any = None) -> None:
    if data is None:
        logger.info(message)
    else:
        logger.info("%s %s", message, sanitize_for_log(data))
