"""Tests for the intake assessment pipeline – no database required."""

import pytest

from clinic_safety.etl.dag import TaskStatus
from clinic_safety.etl.pipeline import (
    build_safety_assessment_pipeline,
    load_assessment,
    plan_key,
    profile_key,
)
from clinic_safety.schemas.audit import AuditEventType
from clinic_safety.services.object_store import is_encrypted_payload


def _make_intake(**overrides):
    intake = {
        "lead_id": "lead-000111",
        "conditions": ["blood_thinners"],
        "has_recent_lab_work": False,
        "demographics": {"fitzpatrick_type": "V"},
        "plan": {
            "clinical_roadmap": [{"name": "Stellar IPL", "benefit": "Even tone"}, {"name": "Botox"}],
            "peptide_therapy": [{"name": "BPC-157"}],
            "iv_optimization": [],
        },
    }
    intake.update(overrides)
    return intake


@pytest.fixture
def pipeline(objects, audit):
    return build_safety_assessment_pipeline(objects, audit)


def test_full_pipeline_happy_path(pipeline, objects, kv_store, audit):
    run = pipeline.run({"intake": _make_intake()})

    assert run.succeeded
    assert run.context["outcomes"] == {"treatments": 3, "blocked": 1, "cautioned": 1, "conditional": 1}

    # Persisted records are encrypted envelopes.
    assert is_encrypted_payload(kv_store.get_item(profile_key("lead-000111")))
    assert is_encrypted_payload(kv_store.get_item(plan_key("lead-000111")))

    profile, plan = load_assessment(objects, "lead-000111")
    assert profile.conditions == ["blood_thinners"]
    ipl = plan.clinical_roadmap[0]
    assert ipl.benefit == "Even tone"
    assert ipl.safety_status.is_blocked
    assert plan.clinical_roadmap[1].safety_status.caution_reasons == ["Blood thinners (Warfarin, Aspirin, etc.)"]

    entry = audit.entries[-1]
    assert entry.event_type == AuditEventType.PHI_CREATE
    assert entry.resource_id == "[ID:000111]"
    assert entry.details["blocked"] == 1


def test_invalid_intake_stops_pipeline(pipeline, kv_store, audit):
    bad = _make_intake(has_recent_lab_work="yes")
    del bad["plan"]

    run = pipeline.run({"intake": bad})

    assert run.status == "failed"
    assert run.failed_tasks() == ["validate_intake"]
    assert len(run.context["validation_errors"]) == 2
    for name in ("merge_conditions", "assess", "audit", "persist"):
        assert pipeline.tasks[name].status == TaskStatus.SKIPPED
    assert kv_store.get_item(plan_key("lead-000111")) is None
    assert len(audit) == 0


def test_failed_assessment_is_not_persisted(objects, audit, kv_store):
    class BrokenEngine:
        def check_treatment_safety(self, *args):
            raise RuntimeError("rule table unavailable")

    pipeline = build_safety_assessment_pipeline(objects, audit, engine=BrokenEngine())
    run = pipeline.run({"intake": _make_intake()})

    assert run.failed_tasks() == ["assess"]
    assert pipeline.tasks["persist"].status == TaskStatus.SKIPPED
    assert kv_store.keys() == []


def test_load_missing_assessment(objects):
    assert load_assessment(objects, "nobody") is None
