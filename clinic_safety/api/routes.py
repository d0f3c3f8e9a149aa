"""
FastAPI routes.

Thin layer over the safety engine, the intake pipeline, the audit ledger and
the encryption service. No decision logic lives here.
"""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import text
from sqlalchemy.orm import Session

from clinic_safety.config import settings
from clinic_safety.etl.pipeline import build_safety_assessment_pipeline, load_assessment
from clinic_safety.models.database import get_db
from clinic_safety.safety.demographics import merge_patient_conditions
from clinic_safety.safety.projection import (
    build_safety_interlocks,
    input_fingerprint,
    plan_needs_reassessment,
    to_safety_status,
)
from clinic_safety.schemas.api import (
    AssessmentResult,
    ConsentRequest,
    HealthResponse,
    InteractionRequest,
    SafetyCheckRequest,
    SafetyCheckResponse,
    SignoffRequest,
    StoredAssessment,
    TaskSummary,
)
from clinic_safety.schemas.audit import AuditEventType, AuditLogEntry, AuditSummary, UserRole
from clinic_safety.schemas.safety import InteractionCheck, PostCareRecommendation
from clinic_safety.schemas.security import EncryptionStatus
from clinic_safety.services.container import ClinicServices, get_services
from clinic_safety.services.exceptions import SecretStoreUnavailable

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db), services: ClinicServices = Depends(get_services)):
    """Verifies DB connectivity and reports the encryption mode."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception:
        logger.exception("Database health check failed")
        db_status = "disconnected"
    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        database=db_status,
        encryption=services.encryption.status().model_dump(),
    )


# ---------------------------------------------------------------------------
# Safety checks
# ---------------------------------------------------------------------------

@router.post("/safety/check", response_model=SafetyCheckResponse)
def check_safety(request: SafetyCheckRequest, services: ClinicServices = Depends(get_services)):
    effective = merge_patient_conditions(request.conditions, request.demographics)
    result = services.engine.check_treatment_safety(request.treatment, effective, request.has_lab_work)
    status = to_safety_status(result, input_fingerprint(effective, request.has_lab_work))
    return SafetyCheckResponse(
        treatment=result.treatment,
        status=status,
        interlocks=build_safety_interlocks(status, effective),
    )


@router.post("/safety/interactions", response_model=InteractionCheck)
def check_interactions(request: InteractionRequest, services: ClinicServices = Depends(get_services)):
    return services.engine.check_treatment_interaction(request.selected_treatment, request.existing_treatments)


@router.get("/safety/post-care/{treatment}", response_model=list[PostCareRecommendation])
def post_care(treatment: str, services: ClinicServices = Depends(get_services)):
    return [
        PostCareRecommendation(
            trigger_treatment=rule.trigger_treatment,
            recommend_treatment=rule.recommend_treatment,
            reason=rule.reason,
            is_post_care=rule.is_post_care,
        )
        for rule in services.engine.get_post_care_recommendations(treatment)
    ]


@router.post("/safety/assess", response_model=AssessmentResult)
def assess_intake(intake: dict, services: ClinicServices = Depends(get_services)):
    """
    Run an intake document through the assessment pipeline. The annotated
    plan is persisted encrypted; nothing is persisted if any step fails.
    """
    pipeline = build_safety_assessment_pipeline(services.objects, services.audit, services.engine)
    run = pipeline.run({"intake": intake})

    if "validate_intake" in run.failed_tasks():
        raise HTTPException(
            status_code=422,
            detail={"message": "Invalid intake document", "errors": run.context.get("validation_errors", [])},
        )
    if not run.succeeded:
        raise HTTPException(status_code=500, detail={"message": "Safety assessment failed", **run.summary()})

    return AssessmentResult(
        pipeline=run.pipeline,
        status=run.status,
        tasks={name: TaskSummary(**info) for name, info in run.tasks.items()},
        outcomes=run.context.get("outcomes", {}),
        plan=run.context.get("annotated_plan"),
    )


@router.get("/assessments/{lead_id}", response_model=StoredAssessment)
def get_assessment(lead_id: str, services: ClinicServices = Depends(get_services)):
    stored = load_assessment(services.objects, lead_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Assessment not found")
    profile, plan = stored

    services.audit.log_phi_access("Safety assessment viewed", "safety_assessment", lead_id)
    return StoredAssessment(
        profile=profile,
        plan=plan,
        needs_reassessment=plan_needs_reassessment(
            plan, profile.conditions, profile.has_recent_lab_work, profile.demographics
        ),
    )


@router.post("/assessments/{lead_id}/signoff", response_model=AuditLogEntry)
def signoff_treatment(lead_id: str, request: SignoffRequest, services: ClinicServices = Depends(get_services)):
    """Practitioner sign-off. Blocked or stale treatments cannot be signed off."""
    stored = load_assessment(services.objects, lead_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Assessment not found")
    profile, plan = stored

    item = next((i for i in plan.items() if i.name.lower() == request.treatment.lower()), None)
    if item is None:
        raise HTTPException(status_code=404, detail="Treatment not in plan")
    if plan_needs_reassessment(plan, profile.conditions, profile.has_recent_lab_work, profile.demographics):
        raise HTTPException(status_code=409, detail="Assessment is out of date; reassess before sign-off")
    if item.safety_status.is_blocked:
        services.audit.record(
            AuditEventType.TREATMENT_SIGNOFF,
            "Sign-off refused for contraindicated treatment",
            user_id=request.practitioner_id,
            user_role=UserRole.staff,
            resource_type="treatment",
            resource_id=lead_id,
            outcome="denied",
            details={"treatment": item.name},
        )
        raise HTTPException(status_code=409, detail=item.safety_status.explainable_reason)

    return services.audit.log_treatment_signoff(item.name, lead_id, request.practitioner_id)


@router.post("/consent", response_model=AuditLogEntry)
def record_consent(request: ConsentRequest, services: ClinicServices = Depends(get_services)):
    return services.audit.log_consent_event(request.action, request.patient_id, request.consent_type)


# ---------------------------------------------------------------------------
# Audit ledger
# ---------------------------------------------------------------------------

@router.get("/audit", response_model=list[AuditLogEntry])
def query_audit(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    event_type: list[AuditEventType] | None = Query(default=None),
    user_role: UserRole | None = None,
    phi_only: bool = False,
    limit: int | None = Query(default=None, ge=1),
    services: ClinicServices = Depends(get_services),
):
    return services.audit.query(
        start_date=start_date,
        end_date=end_date,
        event_types=event_type,
        user_role=user_role,
        phi_only=phi_only,
        limit=limit,
    )


@router.get("/audit/summary", response_model=AuditSummary)
def audit_summary(services: ClinicServices = Depends(get_services)):
    return services.audit.summarize()


@router.get("/audit/export")
def export_audit(start_date: datetime, end_date: datetime, services: ClinicServices = Depends(get_services)):
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    return Response(content=services.audit.export(start_date, end_date), media_type="application/json")


@router.delete("/audit", status_code=204)
def clear_audit(services: ClinicServices = Depends(get_services)):
    services.audit.clear()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

@router.get("/encryption/status", response_model=EncryptionStatus)
def encryption_status(services: ClinicServices = Depends(get_services)):
    return services.encryption.status()


@router.post("/encryption/rotate", response_model=EncryptionStatus)
def rotate_encryption_key(services: ClinicServices = Depends(get_services)):
    """
    Replace the master key. Records encrypted under the old key become
    unreadable; the audit ledger is re-persisted under the new key.
    """
    try:
        services.encryption.rotate_key()
    except SecretStoreUnavailable:
        logger.warning("Key rotation refused: secret store cannot persist a new key")
        services.audit.record(
            AuditEventType.ENCRYPTION_KEY_ROTATION,
            "Encryption key rotation failed",
            user_role=UserRole.staff,
            resource_type="encryption_key",
            outcome="failure",
        )
        raise HTTPException(
            status_code=503,
            detail="Key rotation unavailable: the secret store cannot persist a new key",
        )
    services.audit.record(
        AuditEventType.ENCRYPTION_KEY_ROTATION,
        "Encryption key rotated",
        user_role=UserRole.staff,
        resource_type="encryption_key",
    )
    return services.encryption.status()
