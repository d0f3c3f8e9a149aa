"""
Contraindication rule engine.

Decides, per treatment, whether it may be offered, must carry a caution, or
is conditional on lab review:

1. Case-insensitive exact lookup over procedures, peptides and IV protocols.
   An unknown treatment is all-clear.
2. Absolute red flags present in the patient's conditions block it.
3. Caution flags present produce caution reasons.
4. A rule requiring lab work is conditional until lab work is available.

Blocking, caution and conditionality are evaluated independently. Reasons use
the catalog label, falling back to the raw condition id.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable

from clinic_safety.safety.catalog import HEALTH_CONDITIONS, HealthCondition, build_label_index
from clinic_safety.safety.rules import (
    CONTRAINDICATION_MATRIX,
    IV_CONTRAINDICATIONS,
    PEPTIDE_CONTRAINDICATIONS,
    TREATMENT_INTERACTIONS,
    TREATMENT_RECOMMENDATIONS,
    ContraindicationRule,
    TreatmentInteractionRule,
    TreatmentRecommendationRule,
)
from clinic_safety.schemas.safety import InteractionCheck, SafetyCheckResult

logger = logging.getLogger(__name__)


def _require_treatment(treatment) -> str:
    if not isinstance(treatment, str):
        raise TypeError("Treatment name must be a string")
    return treatment


def _require_conditions(conditions) -> frozenset[str]:
    # A bare string is iterable but would be read as a set of characters.
    if isinstance(conditions, (str, bytes)):
        raise TypeError("Patient conditions must be a collection of condition ids, not a string")
    result = frozenset(conditions)
    if any(not isinstance(c, str) for c in result):
        raise TypeError("Patient condition ids must be strings")
    return result


def get_explainable_reason(treatment: str, blocked_reasons: Iterable[str]) -> str:
    reasons = list(blocked_reasons)
    if not reasons:
        return ""
    return (
        f"{treatment} is contraindicated due to your reported history of "
        f"{', '.join(reasons)}, which increases the risk of adverse reactions."
    )


def should_block_ipl_for_skin_type(conditions: Collection[str]) -> bool:
    return "fitzpatrick_v_vi" in _require_conditions(conditions)


def requires_antiviral_for_lip_flip(conditions: Collection[str]) -> bool:
    return "cold_sores_history" in _require_conditions(conditions)


class ContraindicationEngine:
    """Evaluates treatments against a catalog and fixed rule tables."""

    def __init__(
        self,
        conditions: Iterable[HealthCondition] = HEALTH_CONDITIONS,
        rules: Iterable[ContraindicationRule] = (
            *CONTRAINDICATION_MATRIX,
            *PEPTIDE_CONTRAINDICATIONS,
            *IV_CONTRAINDICATIONS,
        ),
        interactions: Iterable[TreatmentInteractionRule] = TREATMENT_INTERACTIONS,
        recommendations: Iterable[TreatmentRecommendationRule] = TREATMENT_RECOMMENDATIONS,
    ):
        self.labels = build_label_index(tuple(conditions))
        self.rules: dict[str, ContraindicationRule] = {}
        for rule in rules:
            key = rule.treatment.lower()
            if key in self.rules:
                raise ValueError(f"Duplicate contraindication rule for treatment: {rule.treatment}")
            self.rules[key] = rule
        self.interactions = tuple(interactions)
        self.recommendations = tuple(recommendations)
        logger.debug(
            "Contraindication engine built with %d rules and %d catalogued conditions",
            len(self.rules),
            len(self.labels),
        )

    def find_rule(self, treatment: str) -> ContraindicationRule | None:
        return self.rules.get(_require_treatment(treatment).lower())

    def label_for(self, condition_id: str) -> str:
        return self.labels.get(condition_id, condition_id)

    def check_treatment_safety(
        self,
        treatment: str,
        patient_conditions: Collection[str],
        has_lab_work: bool = False,
    ) -> SafetyCheckResult:
        treatment = _require_treatment(treatment)
        present = _require_conditions(patient_conditions)

        rule = self.rules.get(treatment.lower())
        if rule is None:
            return SafetyCheckResult(treatment=treatment)

        blocked = [self.label_for(flag) for flag in rule.absolute_red_flags if flag in present]
        cautions = [self.label_for(flag) for flag in rule.caution_flags if flag in present]

        lab_tests = list(rule.lab_work_type)
        is_conditional = rule.requires_lab_work and not has_lab_work
        conditional_message = None
        if is_conditional:
            conditional_message = (
                f"{treatment} recommendation is conditional pending review of "
                f"{', '.join(lab_tests)} lab results."
            )

        return SafetyCheckResult(
            treatment=treatment,
            is_blocked=bool(blocked),
            blocked_reasons=blocked,
            has_cautions=bool(cautions),
            caution_reasons=cautions,
            requires_lab_work=rule.requires_lab_work,
            required_lab_tests=lab_tests,
            is_conditional=is_conditional,
            conditional_message=conditional_message,
        )

    def check_treatment_interaction(
        self,
        selected_treatment: str,
        existing_treatments: Iterable[str],
    ) -> InteractionCheck:
        """First matching interaction rule (table order) wins."""
        selected = _require_treatment(selected_treatment).lower()
        if isinstance(existing_treatments, str):
            raise TypeError("Existing treatments must be a collection of names, not a string")
        existing = [_require_treatment(t).lower() for t in existing_treatments]

        for rule in self.interactions:
            if rule.treatment.lower() != selected:
                continue
            incompatible = {name.lower() for name in rule.incompatible_with}
            if any(name in incompatible for name in existing):
                return InteractionCheck(has_conflict=True, conflict_message=rule.warning_message)
        return InteractionCheck(has_conflict=False)

    def get_post_care_recommendations(self, treatment: str) -> list[TreatmentRecommendationRule]:
        trigger = _require_treatment(treatment).lower()
        return [
            rule
            for rule in self.recommendations
            if rule.trigger_treatment.lower() == trigger and rule.is_post_care
        ]


default_engine = ContraindicationEngine()


def check_treatment_safety(
    treatment: str,
    patient_conditions: Collection[str],
    has_lab_work: bool = False,
) -> SafetyCheckResult:
    return default_engine.check_treatment_safety(treatment, patient_conditions, has_lab_work)


def check_treatment_interaction(selected_treatment: str, existing_treatments: Iterable[str]) -> InteractionCheck:
    return default_engine.check_treatment_interaction(selected_treatment, existing_treatments)


def get_post_care_recommendations(treatment: str) -> list[TreatmentRecommendationRule]:
    return default_engine.get_post_care_recommendations(treatment)
