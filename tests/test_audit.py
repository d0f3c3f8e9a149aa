"""Tests for the audit ledger."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from clinic_safety.schemas.audit import AuditEventType, AuditOutcome, UserRole
from clinic_safety.services.audit import AuditLog
from clinic_safety.services.object_store import is_encrypted_payload


def _legacy_entry(i: int, when: datetime) -> dict:
    return {
        "id": f"legacy-{i}",
        "timestamp": when.isoformat(),
        "event_type": "PHI_ACCESS",
        "user_role": "staff",
        "action": "Viewed lead",
        "outcome": "success",
    }


def test_record_redacts_and_persists_encrypted(audit, kv_store):
    entry = audit.record(
        AuditEventType.PHI_UPDATE,
        "Lead updated",
        user_id="staff-user-998877",
        user_role=UserRole.staff,
        resource_type="lead",
        resource_id="lead-abcdef123456",
        details={"patientName": "Jane Doe", "note": "call 155512345678", "score": 91},
    )

    assert entry.user_id == "[USER:998877]"
    assert entry.resource_id == "[ID:123456]"
    assert entry.details["patientName"] == "[REDACTED]"
    assert "155512345678" not in entry.details["note"]
    assert entry.details["score"] == 91
    assert entry.timestamp.tzinfo is not None

    raw = kv_store.get_item("audit-test")
    assert is_encrypted_payload(raw)
    assert "Jane" not in raw and "Lead updated" not in raw


def test_set_details_redacted_before_persisting(audit, objects):
    audit.record(
        AuditEventType.PHI_UPDATE,
        "Contact update",
        details={"contacts": {"555-123-4567", "jane@example.com"}},
    )

    persisted = objects.load("audit-test")[-1]["details"]
    assert sorted(persisted["contacts"]) == ["[REDACTED]", "[REDACTED]"]


def test_ledger_survives_reload(audit, objects, clock):
    audit.record(AuditEventType.LOGIN_SUCCESS, "User login")
    audit.record(AuditEventType.LOGOUT, "User logout")

    reloaded = AuditLog(objects, storage_key="audit-test", clock=clock)
    reloaded.initialize()

    assert [e.event_type for e in reloaded.entries] == [AuditEventType.LOGIN_SUCCESS, AuditEventType.LOGOUT]


def test_retention_prunes_old_entries(objects, kv_store, clock):
    now = clock()
    old = [_legacy_entry(i, now - timedelta(days=400)) for i in range(3)]
    recent = [_legacy_entry(i, now - timedelta(days=1)) for i in range(3, 8)]
    objects.save("audit-test", old + recent)

    log = AuditLog(objects, storage_key="audit-test", clock=clock, max_entries=4)
    log.initialize()

    assert [e.id for e in log.entries] == ["legacy-4", "legacy-5", "legacy-6", "legacy-7"]
    persisted = objects.load("audit-test")
    assert len(persisted) == 4


def test_no_repersist_when_nothing_pruned(objects, kv_store, clock):
    objects.save("audit-test", [_legacy_entry(0, clock())])
    before = kv_store.get_item("audit-test")

    AuditLog(objects, storage_key="audit-test", clock=clock).initialize()

    assert kv_store.get_item("audit-test") == before


def test_legacy_plaintext_ledger_migrated(objects, kv_store, clock):
    kv_store.set_item("audit-test", json.dumps([_legacy_entry(0, clock())]))

    log = AuditLog(objects, storage_key="audit-test", clock=clock)
    log.initialize()

    assert is_encrypted_payload(kv_store.get_item("audit-test"))
    assert [e.event_type for e in log.entries] == [AuditEventType.PHI_ACCESS, AuditEventType.DATA_MIGRATION]


def test_unreadable_ledger_quarantined(objects, kv_store, clock, caplog):
    kv_store.set_item("audit-test", "definitely not json")

    log = AuditLog(objects, storage_key="audit-test", clock=clock)
    log.initialize()

    assert len(log) == 0
    assert kv_store.get_item("audit-test:quarantine") == "definitely not json"
    assert "quarantining" in caplog.text


def test_deeply_nested_ledger_quarantined(objects, kv_store, clock):
    garbage = "[" * 200000
    kv_store.set_item("audit-test", garbage)

    log = AuditLog(objects, storage_key="audit-test", clock=clock)
    log.initialize()

    assert len(log) == 0
    assert kv_store.get_item("audit-test:quarantine") == garbage


def test_query_is_self_logging_and_newest_first(audit, clock):
    audit.record(AuditEventType.LOGIN_SUCCESS, "User login", user_role=UserRole.patient)
    clock.advance(minutes=1)
    audit.record(AuditEventType.CONSENT_SIGNED, "Consent", user_role=UserRole.patient, phi_accessed=True)
    clock.advance(minutes=1)

    results = audit.query()

    assert [e.event_type for e in results] == [
        AuditEventType.PHI_ACCESS,
        AuditEventType.CONSENT_SIGNED,
        AuditEventType.LOGIN_SUCCESS,
    ]
    assert results[0].action == "Audit log accessed"
    assert len(audit) == 3


def test_query_filters(audit, clock):
    start = clock()
    audit.record(AuditEventType.LOGIN_FAILURE, "User login failure", user_role=UserRole.staff, outcome="failure")
    clock.advance(days=2)
    audit.record(AuditEventType.CONSENT_SIGNED, "Consent", user_role=UserRole.patient, phi_accessed=True)

    patients = audit.query(user_role=UserRole.patient)
    assert [e.event_type for e in patients] == [AuditEventType.CONSENT_SIGNED]

    early = audit.query(start_date=start, end_date=start + timedelta(days=1))
    assert [e.event_type for e in early] == [AuditEventType.LOGIN_FAILURE]

    failures = audit.query(event_types=["LOGIN_FAILURE"])
    assert failures[0].outcome == AuditOutcome.failure

    phi = audit.query(phi_only=True, limit=2)
    assert len(phi) == 2
    assert all(e.phi_accessed for e in phi)


def test_query_accepts_naive_dates(audit, clock):
    audit.record(AuditEventType.LOGOUT, "User logout")
    naive_start = clock().replace(tzinfo=None) - timedelta(hours=1)

    assert audit.query(start_date=naive_start, event_types=[AuditEventType.LOGOUT])


def test_summary(audit):
    audit.log_auth_event(AuditEventType.LOGIN_SUCCESS, UserRole.staff)
    audit.log_auth_event(AuditEventType.LOGIN_FAILURE, UserRole.staff)
    audit.log_auth_event("LOGIN_FAILURE", "staff")
    audit.log_consent_event("signed", "patient-1")
    audit.log_consent_event("revoked", "patient-1")
    audit.log_phi_access("Viewed plan", "treatment_plan", "lead-1")

    summary = audit.summarize()

    assert summary.total_entries == 6
    assert summary.login_attempts.success == 1
    assert summary.login_attempts.failure == 2
    assert summary.consent_events == 2
    assert summary.phi_access_count == 3
    assert summary.last_activity is not None


def test_convenience_recorders(audit):
    failure = audit.log_auth_event(AuditEventType.LOGIN_FAILURE, UserRole.staff, {"attempts": 3})
    assert failure.outcome == AuditOutcome.failure
    assert failure.action == "User login failure"

    revoked = audit.log_consent_event("revoked", "patient-42")
    assert revoked.event_type == AuditEventType.CONSENT_REVOKED
    assert revoked.action == "Patient consent revoked for AI-assisted treatment"
    assert revoked.resource_id == "[ID:ent-42]"

    signoff = audit.log_treatment_signoff("Morpheus8", "lead-123", "dr-smith")
    assert signoff.event_type == AuditEventType.TREATMENT_SIGNOFF
    assert signoff.details == {"treatment": "Morpheus8"}

    with pytest.raises(ValueError):
        audit.log_auth_event(AuditEventType.PHI_ACCESS, UserRole.staff)
    with pytest.raises(ValueError):
        audit.log_consent_event("ignored")


def test_export(audit, clock):
    audit.record(AuditEventType.LOGIN_SUCCESS, "User login")
    start, end = clock() - timedelta(days=1), clock() + timedelta(days=1)

    exported = json.loads(audit.export(start, end))

    # The query's own access record falls inside the range.
    assert [e["event_type"] for e in exported] == ["PHI_ACCESS", "LOGIN_SUCCESS"]
    last = audit.entries[-1]
    assert last.event_type == AuditEventType.PHI_EXPORT
    assert last.details["entriesExported"] == 2
    assert last.details["dateRange"] == f"{start.isoformat()} to {end.isoformat()}"


def test_clear(audit, kv_store):
    audit.record(AuditEventType.LOGIN_SUCCESS, "User login")
    audit.record(AuditEventType.LOGOUT, "User logout")

    audit.clear()

    assert len(audit) == 0
    assert kv_store.get_item("audit-test") is None


def test_clear_records_deletion_first(audit, objects, clock, monkeypatch):
    audit.record(AuditEventType.LOGIN_SUCCESS, "User login")
    persisted = []
    original_save = objects.save
    monkeypatch.setattr(objects, "save", lambda key, value: (persisted.append(value), original_save(key, value)))

    audit.clear()

    assert persisted[-1][-1]["event_type"] == "PHI_DELETE"
    assert persisted[-1][-1]["details"] == {"entriesCleared": 1}


class _FailingStore:
    def get_item(self, key):
        return None

    def set_item(self, key, value):
        raise OSError("disk full")

    def remove_item(self, key):
        raise OSError("disk full")

    def clear(self):
        pass


def test_persist_failure_is_alerted_not_raised(encryption, clock, caplog):
    from clinic_safety.services.object_store import SecureObjectStore

    alerts = []
    log = AuditLog(
        SecureObjectStore(_FailingStore(), encryption),
        storage_key="audit-test",
        clock=clock,
        on_persist_failure=alerts.append,
    )

    entry = log.record(AuditEventType.LOGIN_SUCCESS, "User login")
    log.clear()

    assert entry.event_type == AuditEventType.LOGIN_SUCCESS
    assert len(alerts) == 3
    assert all(isinstance(a, OSError) for a in alerts)
    assert "Audit log persistence failed" in caplog.text


def test_naive_timestamps_treated_as_utc(objects, clock):
    naive = clock().replace(tzinfo=None)
    objects.save("audit-test", [_legacy_entry(0, naive)])

    log = AuditLog(objects, storage_key="audit-test", clock=clock)
    log.initialize()

    assert log.entries[0].timestamp == naive.replace(tzinfo=timezone.utc)
