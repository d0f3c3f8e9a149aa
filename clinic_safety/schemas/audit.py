"""Pydantic models for the compliance audit ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class AuditEventType(str, Enum):
    PHI_ACCESS = "PHI_ACCESS"
    PHI_CREATE = "PHI_CREATE"
    PHI_UPDATE = "PHI_UPDATE"
    PHI_DELETE = "PHI_DELETE"
    PHI_EXPORT = "PHI_EXPORT"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"
    LOGOUT = "LOGOUT"
    SESSION_TIMEOUT = "SESSION_TIMEOUT"
    CONSENT_SIGNED = "CONSENT_SIGNED"
    CONSENT_REVOKED = "CONSENT_REVOKED"
    TREATMENT_SIGNOFF = "TREATMENT_SIGNOFF"
    ENCRYPTION_KEY_ROTATION = "ENCRYPTION_KEY_ROTATION"
    DATA_MIGRATION = "DATA_MIGRATION"


class UserRole(str, Enum):
    patient = "patient"
    staff = "staff"
    system = "system"


class AuditOutcome(str, Enum):
    success = "success"
    failure = "failure"
    denied = "denied"


class AuditLogEntry(BaseModel):
    """
    One ledger entry. Identifiers and details are already redacted by the
    time an entry is constructed; entries are never edited afterwards.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    event_type: AuditEventType
    user_id: str | None = None
    user_role: UserRole = UserRole.system
    action: str
    resource_type: str | None = None
    resource_id: str | None = None
    outcome: AuditOutcome = AuditOutcome.success
    details: dict[str, Any] | None = None
    phi_accessed: bool | None = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Legacy ledgers stored naive UTC timestamps.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class LoginAttempts(BaseModel):
    success: int = 0
    failure: int = 0


class AuditSummary(BaseModel):
    total_entries: int
    phi_access_count: int
    login_attempts: LoginAttempts
    consent_events: int
    last_activity: datetime | None = None
