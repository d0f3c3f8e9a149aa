"""
Audit logging service for compliance tracking.

Demonstrates:
- Append-only ledger persisted (encrypted) after every append
- Identifier and detail redaction before anything is stored
- Bounded retention (age window + entry cap) applied at startup
- Self-logging of ledger reads, exports and deletions
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

from clinic_safety.config import settings
from clinic_safety.schemas.audit import (
    AuditEventType,
    AuditLogEntry,
    AuditOutcome,
    AuditSummary,
    LoginAttempts,
    UserRole,
)
from clinic_safety.services.encryption import generate_secure_id
from clinic_safety.services.exceptions import CryptoError
from clinic_safety.services.object_store import SecureObjectStore, decrypt_object, is_encrypted_payload
from clinic_safety.services.redaction import redact_identifier, redact_text, sanitize_for_log

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AuditLog:
    """
    Append-only ledger of compliance-relevant events.

    One instance per process, passed to whatever needs to record events.
    Appends are serialized and persisted before :meth:`record` returns.
    """

    def __init__(
        self,
        objects: SecureObjectStore,
        *,
        storage_key: str = settings.AUDIT_LOG_KEY,
        retention_days: int = settings.AUDIT_RETENTION_DAYS,
        max_entries: int = settings.AUDIT_MAX_ENTRIES,
        clock: Callable[[], datetime] = _utc_now,
        on_persist_failure: Callable[[Exception], None] | None = None,
    ):
        self._objects = objects
        self.storage_key = storage_key
        self.retention_days = retention_days
        self.max_entries = max_entries
        self._clock = clock
        self._on_persist_failure = on_persist_failure
        self._entries: list[AuditLogEntry] = []
        self._lock = threading.RLock()
        self.initialized = False

    @property
    def entries(self) -> tuple[AuditLogEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load the persisted ledger, migrate legacy plaintext, apply retention."""
        with self._lock:
            if self.initialized:
                return

            migrated = False
            raw = None
            try:
                raw = self._objects.store.get_item(self.storage_key)
                if raw is not None:
                    if is_encrypted_payload(raw):
                        stored = decrypt_object(raw, self._objects.encryption)
                    else:
                        stored = json.loads(raw)
                        migrated = True
                    self._entries = [AuditLogEntry.model_validate(item) for item in stored]
            except (CryptoError, ValueError, TypeError, RecursionError) as exc:
                logger.error(
                    "Audit log could not be loaded (%s); quarantining record and starting empty",
                    type(exc).__name__,
                )
                self._quarantine(raw)
                self._entries = []
                migrated = False

            self.initialized = True
            removed = self._prune()

            if migrated:
                self.record(
                    AuditEventType.DATA_MIGRATION,
                    "Audit log migrated to encrypted storage",
                    details={"entriesMigrated": len(self._entries)},
                )
            elif removed:
                self._persist()

            logger.info("Audit log initialized with %d entries", len(self._entries))

    def _quarantine(self, raw: str | None) -> None:
        if raw is None:
            return
        try:
            self._objects.store.set_item(f"{self.storage_key}:quarantine", raw)
        except Exception:
            logger.exception("Could not quarantine unreadable audit log")

    def _prune(self) -> int:
        cutoff = self._clock() - timedelta(days=self.retention_days)
        original = len(self._entries)
        kept = [entry for entry in self._entries if entry.timestamp >= cutoff]
        if len(kept) > self.max_entries:
            kept = kept[-self.max_entries:]
        self._entries = kept

        removed = original - len(kept)
        if removed:
            logger.info("Pruned %d old audit entries", removed)
        return removed

    def _persist(self) -> None:
        try:
            self._objects.save(
                self.storage_key,
                [entry.model_dump(mode="json") for entry in self._entries],
            )
        # A failed audit write must never block the operation that triggered it.
        except Exception as exc:
            logger.exception("Audit log persistence failed")
            if self._on_persist_failure is not None:
                self._on_persist_failure(exc)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record(
        self,
        event_type: AuditEventType | str,
        action: str,
        *,
        user_id: str | None = None,
        user_role: UserRole | str = UserRole.system,
        resource_type: str | None = None,
        resource_id: str | None = None,
        outcome: AuditOutcome | str = AuditOutcome.success,
        details: dict[str, Any] | None = None,
        phi_accessed: bool | None = None,
    ) -> AuditLogEntry:
        """Append one redacted entry and persist the ledger."""
        with self._lock:
            if not self.initialized:
                self.initialize()

            entry = AuditLogEntry(
                id=generate_secure_id(),
                timestamp=self._clock(),
                event_type=AuditEventType(event_type),
                user_id=redact_identifier(user_id, "USER"),
                user_role=UserRole(user_role),
                action=action,
                resource_type=resource_type,
                resource_id=redact_identifier(resource_id, "ID"),
                outcome=AuditOutcome(outcome),
                details=sanitize_for_log(details) if details else None,
                phi_accessed=phi_accessed,
            )
            self._entries.append(entry)
            logger.info(
                "AUDIT: %s %s - %s",
                entry.event_type.value,
                redact_text(action),
                entry.outcome.value,
            )
            self._persist()
            return entry

    def log_phi_access(
        self,
        action: str,
        resource_type: str,
        resource_id: str | None = None,
        user_role: UserRole | str = UserRole.staff,
    ) -> AuditLogEntry:
        return self.record(
            AuditEventType.PHI_ACCESS,
            action,
            user_role=user_role,
            resource_type=resource_type,
            resource_id=resource_id,
            phi_accessed=True,
        )

    def log_auth_event(
        self,
        event_type: AuditEventType | str,
        user_role: UserRole | str,
        details: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        event = AuditEventType(event_type)
        if event not in (
            AuditEventType.LOGIN_SUCCESS,
            AuditEventType.LOGIN_FAILURE,
            AuditEventType.LOGOUT,
            AuditEventType.SESSION_TIMEOUT,
        ):
            raise ValueError(f"{event.value} is not an authentication event")
        return self.record(
            event,
            f"User {event.value.lower().replace('_', ' ', 1)}",
            user_role=user_role,
            outcome=AuditOutcome.failure if event is AuditEventType.LOGIN_FAILURE else AuditOutcome.success,
            details=details,
        )

    def log_consent_event(
        self,
        action: str,
        patient_id: str | None = None,
        consent_type: str = "AI-assisted treatment",
    ) -> AuditLogEntry:
        if action not in ("signed", "revoked", "updated"):
            raise ValueError(f"Unknown consent action: {action}")
        return self.record(
            AuditEventType.CONSENT_REVOKED if action == "revoked" else AuditEventType.CONSENT_SIGNED,
            f"Patient consent {action} for {consent_type}",
            user_role=UserRole.patient,
            resource_type="consent",
            resource_id=patient_id,
            phi_accessed=True,
        )

    def log_treatment_signoff(
        self,
        treatment: str,
        lead_id: str,
        user_id: str | None = None,
    ) -> AuditLogEntry:
        return self.record(
            AuditEventType.TREATMENT_SIGNOFF,
            "Practitioner signed off treatment",
            user_id=user_id,
            user_role=UserRole.staff,
            resource_type="treatment",
            resource_id=lead_id,
            details={"treatment": treatment},
            phi_accessed=True,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        *,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        event_types: Iterable[AuditEventType | str] | None = None,
        user_role: UserRole | str | None = None,
        phi_only: bool = False,
        limit: int | None = None,
    ) -> list[AuditLogEntry]:
        """
        Return matching entries newest-first. Reading the ledger is itself a
        PHI access and is recorded before the filter runs.
        """
        with self._lock:
            self.record(
                AuditEventType.PHI_ACCESS,
                "Audit log accessed",
                user_role=UserRole.staff,
                resource_type="audit_log",
                phi_accessed=True,
            )
            entries = list(self._entries)

        if start_date is not None:
            start = _as_utc(start_date)
            entries = [e for e in entries if e.timestamp >= start]
        if end_date is not None:
            end = _as_utc(end_date)
            entries = [e for e in entries if e.timestamp <= end]
        if event_types:
            wanted = {AuditEventType(t) for t in event_types}
            entries = [e for e in entries if e.event_type in wanted]
        if user_role is not None:
            role = UserRole(user_role)
            entries = [e for e in entries if e.user_role == role]
        if phi_only:
            entries = [e for e in entries if e.phi_accessed]

        # Reverse first so equal timestamps keep newest-appended first.
        entries = sorted(reversed(entries), key=lambda e: e.timestamp, reverse=True)
        if limit:
            entries = entries[:limit]
        return entries

    def summarize(self) -> AuditSummary:
        with self._lock:
            if not self.initialized:
                self.initialize()
            entries = list(self._entries)

        return AuditSummary(
            total_entries=len(entries),
            phi_access_count=sum(1 for e in entries if e.phi_accessed),
            login_attempts=LoginAttempts(
                success=sum(1 for e in entries if e.event_type is AuditEventType.LOGIN_SUCCESS),
                failure=sum(1 for e in entries if e.event_type is AuditEventType.LOGIN_FAILURE),
            ),
            consent_events=sum(
                1
                for e in entries
                if e.event_type in (AuditEventType.CONSENT_SIGNED, AuditEventType.CONSENT_REVOKED)
            ),
            last_activity=entries[-1].timestamp if entries else None,
        )

    def export(self, start_date: datetime, end_date: datetime) -> str:
        """Serialize entries in the range for compliance reporting."""
        start, end = _as_utc(start_date), _as_utc(end_date)
        entries = self.query(start_date=start, end_date=end)
        self.record(
            AuditEventType.PHI_EXPORT,
            "Audit log exported",
            user_role=UserRole.staff,
            resource_type="audit_log",
            details={
                "entriesExported": len(entries),
                "dateRange": f"{start.isoformat()} to {end.isoformat()}",
            },
            phi_accessed=True,
        )
        return json.dumps([e.model_dump(mode="json") for e in entries], indent=2)

    def clear(self) -> None:
        """Irreversibly empty the ledger. The deletion itself is recorded first."""
        with self._lock:
            if not self.initialized:
                self.initialize()
            self.record(
                AuditEventType.PHI_DELETE,
                "Audit log cleared",
                user_role=UserRole.staff,
                resource_type="audit_log",
                details={"entriesCleared": len(self._entries)},
            )
            self._entries = []
            try:
                self._objects.remove(self.storage_key)
            except Exception as exc:
                logger.exception("Could not remove persisted audit log")
                if self._on_persist_failure is not None:
                    self._on_persist_failure(exc)
        logger.info("Audit log cleared")
