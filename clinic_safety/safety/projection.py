"""
Safety status projection.

Applies the contraindication engine to every item of a treatment plan and
returns a new plan with a fresh ``safety_status`` on each item. Nothing is
mutated and nothing is cached; each status carries a fingerprint of the
inputs it was computed from.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Collection

from clinic_safety.safety.demographics import merge_patient_conditions
from clinic_safety.safety.engine import ContraindicationEngine, default_engine, get_explainable_reason
from clinic_safety.schemas.safety import (
    InterlockType,
    PatientDemographics,
    SafetyCheckResult,
    SafetyInterlock,
    SafetyStatus,
    TreatmentPlan,
)
from clinic_safety.services.encryption import hash_sensitive_data

logger = logging.getLogger(__name__)


def input_fingerprint(conditions: Collection[str], has_lab_work: bool) -> str:
    """SHA-256 over the sorted effective condition set and the lab flag."""
    canonical = json.dumps({"conditions": sorted(set(conditions)), "has_lab_work": bool(has_lab_work)})
    return hash_sensitive_data(canonical)


def to_safety_status(result: SafetyCheckResult, fingerprint: str) -> SafetyStatus:
    return SafetyStatus(
        is_blocked=result.is_blocked,
        blocked_reasons=result.blocked_reasons,
        has_cautions=result.has_cautions,
        caution_reasons=result.caution_reasons,
        requires_lab_work=result.requires_lab_work,
        required_lab_tests=result.required_lab_tests,
        is_conditional=result.is_conditional,
        conditional_message=result.conditional_message,
        explainable_reason=get_explainable_reason(result.treatment, result.blocked_reasons),
        input_fingerprint=fingerprint,
    )


def annotate_treatment_plan(
    plan: TreatmentPlan,
    conditions: Collection[str],
    has_lab_work: bool,
    demographics: PatientDemographics | None = None,
    engine: ContraindicationEngine = default_engine,
) -> TreatmentPlan:
    """Return a copy of *plan* with every item's safety status recomputed."""
    effective = merge_patient_conditions(conditions, demographics)
    fingerprint = input_fingerprint(effective, has_lab_work)

    def annotate(items):
        return [
            item.model_copy(
                update={
                    "safety_status": to_safety_status(
                        engine.check_treatment_safety(item.name, effective, has_lab_work),
                        fingerprint,
                    )
                }
            )
            for item in items
        ]

    annotated = TreatmentPlan(
        clinical_roadmap=annotate(plan.clinical_roadmap),
        peptide_therapy=annotate(plan.peptide_therapy),
        iv_optimization=annotate(plan.iv_optimization),
    )
    logger.info(
        "Annotated %d treatments (%d blocked)",
        len(annotated.items()),
        sum(1 for item in annotated.items() if item.safety_status.is_blocked),
    )
    return annotated


def status_is_current(
    status: SafetyStatus | None,
    conditions: Collection[str],
    has_lab_work: bool,
    demographics: PatientDemographics | None = None,
) -> bool:
    if status is None:
        return False
    effective = merge_patient_conditions(conditions, demographics)
    return status.input_fingerprint == input_fingerprint(effective, has_lab_work)


def plan_needs_reassessment(
    plan: TreatmentPlan,
    conditions: Collection[str],
    has_lab_work: bool,
    demographics: PatientDemographics | None = None,
) -> bool:
    """True if any item lacks a status or was assessed against different inputs."""
    return any(
        not status_is_current(item.safety_status, conditions, has_lab_work, demographics)
        for item in plan.items()
    )


def build_safety_interlocks(
    status: SafetyStatus | None,
    conditions: Collection[str],
) -> list[SafetyInterlock]:
    """Transparency checklist shown beside a recommendation."""
    interlocks: list[SafetyInterlock] = []

    if status is None:
        interlocks.append(SafetyInterlock(type=InterlockType.cleared, label="Standard safety protocols apply"))
    else:
        if status.is_blocked:
            interlocks.extend(
                SafetyInterlock(type=InterlockType.blocked, label=reason) for reason in status.blocked_reasons
            )
        else:
            interlocks.append(
                SafetyInterlock(type=InterlockType.cleared, label="No absolute contraindications detected")
            )
        if status.has_cautions:
            interlocks.extend(
                SafetyInterlock(type=InterlockType.warning, label=reason) for reason in status.caution_reasons
            )
        if status.requires_lab_work:
            interlocks.append(
                SafetyInterlock(
                    type=InterlockType.warning,
                    label=f"Lab work required: {', '.join(status.required_lab_tests)}",
                )
            )

    # Common screening items are listed only when the patient is clear of them.
    for condition_id, label in (
        ("pacemaker", "Pacemaker/defibrillator"),
        ("active_skin_infection", "Active skin infection"),
        ("pregnancy", "Pregnancy"),
    ):
        if condition_id not in conditions:
            interlocks.append(SafetyInterlock(type=InterlockType.cleared, label=label))

    return interlocks
