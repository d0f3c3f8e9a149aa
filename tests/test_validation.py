"""Tests for JSON Schema validation of persisted envelopes and intake documents."""

from clinic_safety.schemas.documents import ENCRYPTED_PAYLOAD_SCHEMA, PATIENT_INTAKE_SCHEMA
from clinic_safety.services.validation import is_valid, validate_against_schema


def test_valid_intake_passes():
    intake = {
        "lead_id": "lead-1",
        "conditions": ["pregnancy"],
        "has_recent_lab_work": True,
        "lab_work_date": "2025-03-01",
        "demographics": {"fitzpatrick_type": "III"},
        "plan": {"clinical_roadmap": [{"name": "Morpheus8", "price": "$900"}]},
    }
    assert validate_against_schema(intake, PATIENT_INTAKE_SCHEMA) == []


def test_missing_required_fields():
    errors = validate_against_schema({"lead_id": "lead-1"}, PATIENT_INTAKE_SCHEMA)
    assert len(errors) == 3
    assert any("conditions" in e for e in errors)


def test_bad_fitzpatrick_and_date():
    intake = {
        "lead_id": "lead-1",
        "conditions": [],
        "has_recent_lab_work": False,
        "lab_work_date": "03/01/2025",
        "demographics": {"fitzpatrick_type": "VII"},
        "plan": {},
    }
    assert len(validate_against_schema(intake, PATIENT_INTAKE_SCHEMA)) == 2


def test_envelope_schema_requires_exact_shape():
    envelope = {"ciphertext": "YQ==", "iv": "YQ==", "tag": "YQ==", "version": 2}
    assert is_valid(envelope, ENCRYPTED_PAYLOAD_SCHEMA)
    assert not is_valid({**envelope, "version": True}, ENCRYPTED_PAYLOAD_SCHEMA)
    assert not is_valid({**envelope, "extra": "x"}, ENCRYPTED_PAYLOAD_SCHEMA)
    assert not is_valid({k: v for k, v in envelope.items() if k != "tag"}, ENCRYPTED_PAYLOAD_SCHEMA)
