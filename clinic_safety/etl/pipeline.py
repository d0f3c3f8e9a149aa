"""
Intake assessment pipeline.

    validate_intake -> merge_conditions -> assess -> audit -> persist

- validate_intake: JSON-schema check of the intake document
- merge_conditions: demographics folded into the declared conditions
- assess: safety status projection over the recommended plan
- audit: redacted PHI_CREATE event with outcome counts
- persist: profile and annotated plan written through the secure object store
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from clinic_safety.etl.dag import DAG
from clinic_safety.safety.demographics import merge_patient_conditions
from clinic_safety.safety.engine import ContraindicationEngine, default_engine
from clinic_safety.safety.projection import annotate_treatment_plan
from clinic_safety.schemas.audit import AuditEventType, UserRole
from clinic_safety.schemas.documents import PATIENT_INTAKE_SCHEMA
from clinic_safety.schemas.safety import PatientDemographics, PatientHealthProfile, TreatmentPlan
from clinic_safety.services.audit import AuditLog
from clinic_safety.services.object_store import SecureObjectStore
from clinic_safety.services.validation import validate_against_schema

logger = logging.getLogger(__name__)


class IntakeValidationError(ValueError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Intake document failed validation ({len(errors)} errors)")


def profile_key(lead_id: str) -> str:
    return f"lead:{lead_id}:profile"


def plan_key(lead_id: str) -> str:
    return f"lead:{lead_id}:plan"


# ---------------------------------------------------------------------------
# Steps that need no services
# ---------------------------------------------------------------------------


def validate_intake(context: dict[str, Any]) -> dict[str, Any]:
    intake = context.get("intake")
    errors = validate_against_schema(intake, PATIENT_INTAKE_SCHEMA)
    if errors:
        context["validation_errors"] = errors
        raise IntakeValidationError(errors)

    demographics = PatientDemographics.model_validate(intake.get("demographics") or {})
    profile = PatientHealthProfile(
        conditions=intake["conditions"],
        has_recent_lab_work=intake["has_recent_lab_work"],
        lab_work_date=intake.get("lab_work_date"),
        demographics=demographics,
        completed_at=datetime.now(timezone.utc),
    )
    plan = TreatmentPlan.model_validate(intake["plan"])
    logger.info("Intake validated: %d conditions, %d treatments", len(profile.conditions), len(plan.items()))
    return {
        "lead_id": intake["lead_id"],
        "profile": profile,
        "plan": plan,
    }


def merge_conditions(context: dict[str, Any]) -> dict[str, Any]:
    profile: PatientHealthProfile = context["profile"]
    effective = merge_patient_conditions(profile.conditions, profile.demographics)
    return {"effective_conditions": effective}


def count_outcomes(plan: TreatmentPlan) -> dict[str, int]:
    statuses = [item.safety_status for item in plan.items() if item.safety_status is not None]
    return {
        "treatments": len(statuses),
        "blocked": sum(1 for s in statuses if s.is_blocked),
        "cautioned": sum(1 for s in statuses if s.has_cautions),
        "conditional": sum(1 for s in statuses if s.is_conditional),
    }


# ---------------------------------------------------------------------------
# Pipeline factory
# ---------------------------------------------------------------------------


def build_safety_assessment_pipeline(
    objects: SecureObjectStore,
    audit: AuditLog,
    engine: ContraindicationEngine = default_engine,
) -> DAG:
    """Construct the intake assessment DAG bound to the given services."""

    def assess(context: dict[str, Any]) -> dict[str, Any]:
        profile: PatientHealthProfile = context["profile"]
        annotated = annotate_treatment_plan(
            context["plan"],
            context["effective_conditions"],
            profile.has_recent_lab_work,
            engine=engine,
        )
        return {"annotated_plan": annotated, "outcomes": count_outcomes(annotated)}

    def record_audit(context: dict[str, Any]) -> dict[str, Any]:
        entry = audit.record(
            AuditEventType.PHI_CREATE,
            "Safety assessment created",
            user_role=UserRole.system,
            resource_type="safety_assessment",
            resource_id=context["lead_id"],
            details=context["outcomes"],
            phi_accessed=True,
        )
        return {"audit_entry_id": entry.id}

    def persist(context: dict[str, Any]) -> dict[str, Any]:
        lead_id = context["lead_id"]
        objects.save(profile_key(lead_id), context["profile"].model_dump(mode="json"))
        objects.save(plan_key(lead_id), context["annotated_plan"].model_dump(mode="json"))
        logger.info("Persisted encrypted assessment records")
        return {"persisted_keys": [profile_key(lead_id), plan_key(lead_id)]}

    dag = DAG("safety_assessment")
    dag.add_task("validate_intake", validate_intake)
    dag.add_task("merge_conditions", merge_conditions, depends_on=["validate_intake"])
    dag.add_task("assess", assess, depends_on=["merge_conditions"])
    dag.add_task("audit", record_audit, depends_on=["assess"])
    dag.add_task("persist", persist, depends_on=["audit"])
    return dag


def load_assessment(objects: SecureObjectStore, lead_id: str) -> tuple[PatientHealthProfile, TreatmentPlan] | None:
    """Read back a persisted profile and plan, or ``None`` if either is missing."""
    profile = objects.load(profile_key(lead_id))
    plan = objects.load(plan_key(lead_id))
    if profile is None or plan is None:
        return None
    return PatientHealthProfile.model_validate(profile), TreatmentPlan.model_validate(plan)
