"""Pydantic models for contraindication results and annotated treatment plans."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SafetyCheckResult(BaseModel):
    """Outcome of evaluating one treatment. Computed on demand, never cached."""
    model_config = ConfigDict(frozen=True)

    treatment: str
    is_blocked: bool = False
    blocked_reasons: list[str] = Field(default_factory=list)
    has_cautions: bool = False
    caution_reasons: list[str] = Field(default_factory=list)
    requires_lab_work: bool = False
    required_lab_tests: list[str] = Field(default_factory=list)
    is_conditional: bool = False
    conditional_message: str | None = None


class InteractionCheck(BaseModel):
    has_conflict: bool
    conflict_message: str | None = None


class PostCareRecommendation(BaseModel):
    trigger_treatment: str
    recommend_treatment: str
    reason: str
    is_post_care: bool = True


class SafetyStatus(BaseModel):
    """
    A SafetyCheckResult attached to a treatment item.

    ``input_fingerprint`` identifies the condition set and lab flag the status
    was computed from, so a status computed for a different intake is
    detectably stale.
    """
    model_config = ConfigDict(frozen=True)

    is_blocked: bool
    blocked_reasons: list[str] = Field(default_factory=list)
    has_cautions: bool
    caution_reasons: list[str] = Field(default_factory=list)
    requires_lab_work: bool
    required_lab_tests: list[str] = Field(default_factory=list)
    is_conditional: bool
    conditional_message: str | None = None
    explainable_reason: str = ""
    input_fingerprint: str


class FitzpatrickType(str, Enum):
    I = "I"
    II = "II"
    III = "III"
    IV = "IV"
    V = "V"
    VI = "VI"


class PatientDemographics(BaseModel):
    fitzpatrick_type: FitzpatrickType | None = None


class PatientHealthProfile(BaseModel):
    conditions: list[str] = Field(default_factory=list)
    has_recent_lab_work: bool = False
    lab_work_date: str | None = None
    demographics: PatientDemographics | None = None
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ClinicalProcedure(BaseModel):
    name: str
    benefit: str = ""
    price: str = ""
    clinical_reason: str = ""
    safety_status: SafetyStatus | None = None


class PeptideTherapy(BaseModel):
    name: str
    goal: str = ""
    mechanism: str = ""
    frequency: str = ""
    safety_status: SafetyStatus | None = None


class IVOptimization(BaseModel):
    name: str
    benefit: str = ""
    ingredients: str = ""
    duration: str = ""
    safety_status: SafetyStatus | None = None


class TreatmentPlan(BaseModel):
    clinical_roadmap: list[ClinicalProcedure] = Field(default_factory=list)
    peptide_therapy: list[PeptideTherapy] = Field(default_factory=list)
    iv_optimization: list[IVOptimization] = Field(default_factory=list)

    def items(self) -> list[ClinicalProcedure | PeptideTherapy | IVOptimization]:
        return [*self.clinical_roadmap, *self.peptide_therapy, *self.iv_optimization]


class InterlockType(str, Enum):
    cleared = "cleared"
    warning = "warning"
    blocked = "blocked"


class SafetyInterlock(BaseModel):
    type: InterlockType
    label: str
    detected: bool = True
