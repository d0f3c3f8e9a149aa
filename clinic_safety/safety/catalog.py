"""
Health condition catalog.

Static reference data: every condition id a patient can declare, with the
patient-facing label used in contraindication reasons. The catalog is the
universe of condition ids; rule tables may still reference ids that are not
catalogued, in which case the raw id is shown.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from clinic_safety.schemas.documents import HEALTH_CONDITION_CATALOG_SCHEMA
from clinic_safety.services.validation import validate_against_schema

logger = logging.getLogger(__name__)


class ConditionCategory(str, Enum):
    medical = "medical"
    medication = "medication"
    allergy = "allergy"
    lifestyle = "lifestyle"
    lab = "lab"


class ConditionSeverity(str, Enum):
    absolute = "absolute"
    caution = "caution"


@dataclass(frozen=True)
class HealthCondition:
    id: str
    label: str
    category: ConditionCategory
    severity: ConditionSeverity


HEALTH_CONDITIONS: tuple[HealthCondition, ...] = (
    HealthCondition("pacemaker", "Pacemaker or internal defibrillator", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("internal_defibrillator", "Internal defibrillator", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("active_skin_cancer", "Active skin cancer", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("pregnancy", "Pregnant or possibly pregnant", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("breastfeeding", "Currently breastfeeding", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("keloid_history", "History of keloid scarring", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("myasthenia_gravis", "Myasthenia Gravis", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("als", "ALS (Amyotrophic Lateral Sclerosis)", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("eaton_lambert", "Eaton-Lambert Syndrome", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("autoimmune_disease_active", "Active autoimmune disease flare", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("autoimmune_disease", "Autoimmune disease (controlled)", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("active_malignancy", "Active cancer/malignancy", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("tumor_history", "History of tumors", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("kidney_disease_stage3plus", "Stage 3+ kidney disease", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("kidney_failure_esrd", "End-stage renal disease (ESRD)", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("kidney_disease", "Kidney disease (mild)", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("congestive_heart_failure", "Congestive heart failure", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("cardiovascular_disease", "Cardiovascular disease", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("diabetes_uncontrolled", "Uncontrolled diabetes", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("diabetes", "Diabetes (controlled)", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("g6pd_deficiency", "G6PD deficiency", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("bleeding_disorder", "Bleeding/clotting disorder", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("blood_clotting_disorder", "Blood clotting disorder", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("seizure_disorder_light_triggered", "Light-triggered seizure disorder", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("photosensitivity_disorder", "Photosensitivity disorder", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("liver_disease", "Liver disease", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("difficulty_swallowing", "Difficulty swallowing", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("infection_injection_site", "Active infection at treatment site", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("active_skin_infection", "Active skin infection", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("active_infection", "Active systemic infection", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("severe_active_acne", "Severe active acne", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("active_acne", "Active acne (mild/moderate)", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("active_herpes_outbreak", "Active herpes/cold sore outbreak", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("cold_sores_history", "History of cold sores", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("eczema_psoriasis", "Eczema or psoriasis", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("open_wounds", "Open wounds in treatment area", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("sunburn", "Current sunburn", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("melasma", "Melasma", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("accutane_6months", "Accutane use (within last 6 months)", ConditionCategory.medication, ConditionSeverity.absolute),
    HealthCondition("accutane_12months", "Accutane use (within last 12 months)", ConditionCategory.medication, ConditionSeverity.absolute),
    HealthCondition("blood_thinners", "Blood thinners (Warfarin, Aspirin, etc.)", ConditionCategory.medication, ConditionSeverity.caution),
    HealthCondition("aminoglycoside_antibiotics", "Aminoglycoside antibiotics", ConditionCategory.medication, ConditionSeverity.caution),
    HealthCondition("retinol_48h", "Retinol/AHA use (last 48 hours)", ConditionCategory.medication, ConditionSeverity.caution),
    HealthCondition("immunosuppressed", "Immunosuppressive medications", ConditionCategory.medication, ConditionSeverity.caution),
    HealthCondition("shellfish_allergy", "Shellfish allergy", ConditionCategory.allergy, ConditionSeverity.absolute),
    HealthCondition("sulfa_allergy", "Sulfa drug allergy", ConditionCategory.allergy, ConditionSeverity.absolute),
    HealthCondition("allergy_to_plla", "Allergy to PLLA", ConditionCategory.allergy, ConditionSeverity.absolute),
    HealthCondition("copper_sensitivity", "Copper sensitivity", ConditionCategory.allergy, ConditionSeverity.absolute),
    HealthCondition("magnesium_sensitivity", "Magnesium sensitivity", ConditionCategory.allergy, ConditionSeverity.caution),
    HealthCondition("recent_tan", "Recent sun tan (last 2 weeks)", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("recent_facial_surgery", "Recent facial surgery", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("recent_botox_fillers_14days", "Botox/Fillers within 14 days", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("recent_dental_work", "Recent dental work", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("recent_waxing", "Recent waxing in treatment area", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("metal_implants_face", "Metal implants in face", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("upcoming_event_3days", "Important event within 3 days", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("recent_filler_4weeks", "Dermal filler within last 4 weeks", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("recent_rf_treatment", "Recent radiofrequency treatment", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("recent_deep_peel", "Deep chemical peel (same day)", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("fitzpatrick_iv", "Fitzpatrick Skin Type IV", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("fitzpatrick_v_vi", "Fitzpatrick Skin Type V or VI (darker skin)", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("active_cystic_acne", "Active cystic acne", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("thin_fragile_skin", "Thin or fragile skin", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("rosacea_active", "Active rosacea flare", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("active_dental_infection", "Active dental infection", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("immunosuppressed_severe", "Severely immunosuppressed", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("allergy_to_calcium_hydroxylapatite", "Allergy to calcium hydroxylapatite", ConditionCategory.allergy, ConditionSeverity.absolute),
    HealthCondition("lab_work_available", "Recent lab work available (CBC/CMP)", ConditionCategory.lab, ConditionSeverity.caution),
    HealthCondition("lab_work_unavailable", "No recent lab work", ConditionCategory.lab, ConditionSeverity.caution),
    HealthCondition("platelet_dysfunction", "Platelet dysfunction", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("anemia", "Anemia", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("nsaid_use_recent", "NSAID use (last 7 days)", ConditionCategory.medication, ConditionSeverity.caution),
    HealthCondition("asthma_severe", "Severe asthma", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("hemochromatosis", "Hemochromatosis (iron overload)", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("oxalate_kidney_stones", "History of oxalate kidney stones", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("bipolar_disorder", "Bipolar disorder", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("anxiety_disorder", "Anxiety disorder", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("wilson_disease", "Wilson disease", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("hormone_sensitive_conditions", "Hormone-sensitive conditions", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("autoimmune_flare", "Autoimmune flare-up", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("carpal_tunnel", "Carpal tunnel syndrome", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("organ_transplant_immunosuppressed", "Organ transplant recipient", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("diabetic_retinopathy", "Diabetic retinopathy", ConditionCategory.medical, ConditionSeverity.absolute),
    HealthCondition("prior_neck_surgery", "Prior neck surgery", ConditionCategory.lifestyle, ConditionSeverity.caution),
    HealthCondition("enlarged_thyroid", "Enlarged thyroid", ConditionCategory.medical, ConditionSeverity.caution),
    HealthCondition("infection_treatment_area", "Infection in treatment area", ConditionCategory.medical, ConditionSeverity.absolute),
)


class CatalogError(ValueError):
    """Raised when a catalog data file is malformed."""


def build_label_index(conditions: tuple[HealthCondition, ...] | list[HealthCondition]) -> dict[str, str]:
    """Map condition id to label. Duplicate ids are rejected."""
    index: dict[str, str] = {}
    for condition in conditions:
        if condition.id in index:
            raise CatalogError(f"Duplicate condition id in catalog: {condition.id}")
        index[condition.id] = condition.label
    return index


def load_catalog(path: str | Path) -> tuple[HealthCondition, ...]:
    """
    Load a catalog from a JSON data file.

    The file holds a list of ``{id, label, category, severity}`` objects and
    is validated against HEALTH_CONDITION_CATALOG_SCHEMA before use.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogError(f"Cannot read condition catalog {path.name}") from exc

    errors = validate_against_schema(data, HEALTH_CONDITION_CATALOG_SCHEMA)
    if errors:
        raise CatalogError(f"Invalid condition catalog {path.name}: {'; '.join(errors)}")

    conditions = tuple(
        HealthCondition(
            id=item["id"],
            label=item["label"],
            category=ConditionCategory(item["category"]),
            severity=ConditionSeverity(item["severity"]),
        )
        for item in data
    )
    build_label_index(conditions)
    logger.info("Loaded %d health conditions from %s", len(conditions), path.name)
    return conditions
