"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from clinic_safety.schemas.safety import (
    PatientDemographics,
    PatientHealthProfile,
    SafetyInterlock,
    SafetyStatus,
    TreatmentPlan,
)


# ---------------------------------------------------------------------------
# Safety checks
# ---------------------------------------------------------------------------

class SafetyCheckRequest(BaseModel):
    treatment: str = Field(..., min_length=1)
    conditions: list[str] = Field(default_factory=list)
    has_lab_work: bool = False
    demographics: PatientDemographics | None = None


class SafetyCheckResponse(BaseModel):
    treatment: str
    status: SafetyStatus
    interlocks: list[SafetyInterlock]


class InteractionRequest(BaseModel):
    selected_treatment: str = Field(..., min_length=1)
    existing_treatments: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Intake assessment pipeline
# ---------------------------------------------------------------------------

class TaskSummary(BaseModel):
    status: str
    duration_ms: float | None = None
    error: str | None = None


class AssessmentResult(BaseModel):
    pipeline: str
    status: str
    tasks: dict[str, TaskSummary]
    outcomes: dict[str, int] = {}
    plan: TreatmentPlan | None = None


class StoredAssessment(BaseModel):
    profile: PatientHealthProfile
    plan: TreatmentPlan
    needs_reassessment: bool


class SignoffRequest(BaseModel):
    treatment: str = Field(..., min_length=1)
    practitioner_id: str | None = None


class ConsentRequest(BaseModel):
    action: str = Field(..., pattern="^(signed|revoked|updated)$")
    patient_id: str | None = None
    consent_type: str = "AI-assisted treatment"


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
    encryption: dict[str, Any] = {}
