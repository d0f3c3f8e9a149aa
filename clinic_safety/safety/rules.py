"""
Static contraindication, interaction and post-care rule tables.

One rule per treatment name (case-insensitive). Flag order is significant:
reasons are reported in table order.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ContraindicationRule:
    treatment: str
    absolute_red_flags: tuple[str, ...]
    caution_flags: tuple[str, ...]
    requires_lab_work: bool = False
    lab_work_type: tuple[str, ...] = ()


@dataclass(frozen=True)
class TreatmentInteractionRule:
    treatment: str
    incompatible_with: tuple[str, ...]
    wait_period_days: int
    warning_message: str


@dataclass(frozen=True)
class TreatmentRecommendationRule:
    trigger_treatment: str
    recommend_treatment: str
    reason: str
    is_post_care: bool


# Aesthetic procedures
CONTRAINDICATION_MATRIX: tuple[ContraindicationRule, ...] = (
    ContraindicationRule(
        treatment="Morpheus8",
        absolute_red_flags=(
            "pacemaker",
            "internal_defibrillator",
            "active_skin_cancer",
            "pregnancy",
            "keloid_history",
        ),
        caution_flags=(
            "recent_tan",
            "accutane_6months",
            "metal_implants_face",
        ),
    ),
    ContraindicationRule(
        treatment="Botox Cosmetic",
        absolute_red_flags=(
            "myasthenia_gravis",
            "als",
            "eaton_lambert",
            "infection_injection_site",
            "pregnancy",
        ),
        caution_flags=(
            "recent_facial_surgery",
            "aminoglycoside_antibiotics",
            "blood_thinners",
        ),
    ),
    ContraindicationRule(
        treatment="HydraFacial",
        absolute_red_flags=(
            "shellfish_allergy",
            "accutane_12months",
            "severe_active_acne",
        ),
        caution_flags=(
            "retinol_48h",
            "recent_botox_fillers_14days",
            "sunburn",
        ),
    ),
    ContraindicationRule(
        treatment="Dermal Fillers",
        absolute_red_flags=(
            "active_skin_infection",
            "pregnancy",
            "autoimmune_disease_active",
            "bleeding_disorder",
        ),
        caution_flags=(
            "blood_thinners",
            "recent_dental_work",
            "cold_sores_history",
        ),
    ),
    ContraindicationRule(
        treatment="IPL",
        absolute_red_flags=(
            "pregnancy",
            "active_skin_cancer",
            "photosensitivity_disorder",
            "seizure_disorder_light_triggered",
            "fitzpatrick_v_vi",
        ),
        caution_flags=(
            "recent_tan",
            "accutane_6months",
            "melasma",
            "fitzpatrick_iv",
        ),
    ),
    ContraindicationRule(
        treatment="Red Light Therapy",
        absolute_red_flags=(
            "active_skin_cancer",
            "photosensitivity_disorder",
            "seizure_disorder_light_triggered",
        ),
        caution_flags=(
            "retinol_48h",
            "pregnancy",
        ),
    ),
    ContraindicationRule(
        treatment="LED Therapy",
        absolute_red_flags=(
            "active_skin_cancer",
            "photosensitivity_disorder",
            "seizure_disorder_light_triggered",
        ),
        caution_flags=(
            "retinol_48h",
            "pregnancy",
        ),
    ),
    ContraindicationRule(
        treatment="Clear + Brilliant",
        absolute_red_flags=(
            "pregnancy",
            "active_skin_infection",
            "accutane_6months",
            "keloid_history",
        ),
        caution_flags=(
            "recent_tan",
            "upcoming_event_3days",
            "retinol_48h",
            "melasma",
        ),
    ),
    ContraindicationRule(
        treatment="MOXI Laser",
        absolute_red_flags=(
            "pregnancy",
            "active_skin_infection",
            "accutane_6months",
            "keloid_history",
        ),
        caution_flags=(
            "recent_tan",
            "upcoming_event_3days",
            "retinol_48h",
            "fitzpatrick_v_vi",
        ),
    ),
    ContraindicationRule(
        treatment="Chemical Peel",
        absolute_red_flags=(
            "pregnancy",
            "active_herpes_outbreak",
            "open_wounds",
            "accutane_12months",
        ),
        caution_flags=(
            "retinol_48h",
            "recent_waxing",
            "eczema_psoriasis",
        ),
    ),
    ContraindicationRule(
        treatment="Microneedling",
        absolute_red_flags=(
            "active_skin_infection",
            "keloid_history",
            "blood_clotting_disorder",
            "accutane_6months",
        ),
        caution_flags=(
            "blood_thinners",
            "active_acne",
            "eczema_psoriasis",
        ),
    ),
    ContraindicationRule(
        treatment="Microdermabrasion",
        absolute_red_flags=(
            "active_cystic_acne",
            "thin_fragile_skin",
            "rosacea_active",
            "active_skin_infection",
            "eczema_psoriasis",
        ),
        caution_flags=(
            "active_acne",
            "recent_tan",
            "retinol_48h",
            "blood_thinners",
        ),
    ),
    ContraindicationRule(
        treatment="Dermaplaning",
        absolute_red_flags=(
            "active_cystic_acne",
            "active_skin_infection",
            "blood_clotting_disorder",
        ),
        caution_flags=(
            "active_acne",
            "recent_deep_peel",
            "eczema_psoriasis",
            "retinol_48h",
        ),
    ),
    ContraindicationRule(
        treatment="PDO Threads",
        absolute_red_flags=(
            "autoimmune_disease_active",
            "active_infection",
            "pregnancy",
            "blood_clotting_disorder",
            "keloid_history",
            "active_dental_infection",
        ),
        caution_flags=(
            "blood_thinners",
            "recent_facial_surgery",
            "diabetes_uncontrolled",
        ),
    ),
    ContraindicationRule(
        treatment="Radiesse",
        absolute_red_flags=(
            "allergy_to_calcium_hydroxylapatite",
            "active_skin_infection",
            "keloid_history",
            "autoimmune_disease_active",
            "pregnancy",
        ),
        caution_flags=(
            "blood_thinners",
            "immunosuppressed",
            "recent_filler_4weeks",
            "recent_rf_treatment",
        ),
    ),
    ContraindicationRule(
        treatment="Exosome Therapy",
        absolute_red_flags=(
            "active_malignancy",
            "active_skin_infection",
            "immunosuppressed_severe",
        ),
        caution_flags=(
            "autoimmune_disease",
            "pregnancy",
            "immunosuppressed",
        ),
    ),
    ContraindicationRule(
        treatment="Baby Botox",
        absolute_red_flags=(
            "myasthenia_gravis",
            "als",
            "eaton_lambert",
            "infection_injection_site",
            "pregnancy",
        ),
        caution_flags=(
            "recent_facial_surgery",
            "aminoglycoside_antibiotics",
            "blood_thinners",
        ),
    ),
    ContraindicationRule(
        treatment="Lip Flip",
        absolute_red_flags=(
            "myasthenia_gravis",
            "als",
            "eaton_lambert",
            "infection_injection_site",
            "pregnancy",
        ),
        caution_flags=(
            "cold_sores_history",
            "recent_facial_surgery",
            "blood_thinners",
        ),
    ),
    ContraindicationRule(
        treatment="Kybella",
        absolute_red_flags=(
            "infection_treatment_area",
            "pregnancy",
            "difficulty_swallowing",
            "bleeding_disorder",
        ),
        caution_flags=(
            "prior_neck_surgery",
            "blood_thinners",
            "enlarged_thyroid",
        ),
    ),
    ContraindicationRule(
        treatment="Sculptra",
        absolute_red_flags=(
            "allergy_to_plla",
            "active_skin_infection",
            "keloid_history",
            "autoimmune_disease_active",
        ),
        caution_flags=(
            "blood_thinners",
            "immunosuppressed",
            "recent_filler_4weeks",
            "recent_rf_treatment",
        ),
    ),
    ContraindicationRule(
        treatment="Wrinkle Relaxers",
        absolute_red_flags=(
            "myasthenia_gravis",
            "als",
            "eaton_lambert",
            "infection_injection_site",
            "pregnancy",
        ),
        caution_flags=(
            "recent_facial_surgery",
            "aminoglycoside_antibiotics",
            "blood_thinners",
        ),
    ),
    ContraindicationRule(
        treatment="Botox",
        absolute_red_flags=(
            "myasthenia_gravis",
            "als",
            "eaton_lambert",
            "infection_injection_site",
            "pregnancy",
        ),
        caution_flags=(
            "recent_facial_surgery",
            "aminoglycoside_antibiotics",
            "blood_thinners",
        ),
    ),
    ContraindicationRule(
        treatment="Dermal Filler",
        absolute_red_flags=(
            "active_skin_infection",
            "pregnancy",
            "autoimmune_disease_active",
            "bleeding_disorder",
        ),
        caution_flags=(
            "blood_thinners",
            "recent_dental_work",
            "cold_sores_history",
        ),
    ),
    ContraindicationRule(
        treatment="Lip Filler",
        absolute_red_flags=(
            "active_skin_infection",
            "pregnancy",
            "autoimmune_disease_active",
            "bleeding_disorder",
            "active_herpes_outbreak",
        ),
        caution_flags=(
            "blood_thinners",
            "cold_sores_history",
            "recent_dental_work",
        ),
    ),
    ContraindicationRule(
        treatment="Plasma BioFiller",
        absolute_red_flags=(
            "active_skin_infection",
            "pregnancy",
            "bleeding_disorder",
            "blood_clotting_disorder",
            "active_malignancy",
            "platelet_dysfunction",
        ),
        caution_flags=(
            "blood_thinners",
            "nsaid_use_recent",
            "anemia",
            "autoimmune_disease",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "Platelet Count"),
    ),
    ContraindicationRule(
        treatment="Stellar IPL",
        absolute_red_flags=(
            "pregnancy",
            "active_skin_cancer",
            "photosensitivity_disorder",
            "seizure_disorder_light_triggered",
            "fitzpatrick_v_vi",
        ),
        caution_flags=(
            "recent_tan",
            "accutane_6months",
            "melasma",
            "fitzpatrick_iv",
            "retinol_48h",
        ),
    ),
    ContraindicationRule(
        treatment="ResurFX",
        absolute_red_flags=(
            "pregnancy",
            "active_skin_infection",
            "accutane_6months",
            "keloid_history",
            "active_herpes_outbreak",
        ),
        caution_flags=(
            "recent_tan",
            "fitzpatrick_iv",
            "fitzpatrick_v_vi",
            "retinol_48h",
            "eczema_psoriasis",
        ),
    ),
    ContraindicationRule(
        treatment="RF Microneedling",
        absolute_red_flags=(
            "pacemaker",
            "internal_defibrillator",
            "active_skin_infection",
            "keloid_history",
            "blood_clotting_disorder",
            "accutane_6months",
            "pregnancy",
        ),
        caution_flags=(
            "blood_thinners",
            "active_acne",
            "eczema_psoriasis",
            "metal_implants_face",
        ),
    ),
    ContraindicationRule(
        treatment="Endolift",
        absolute_red_flags=(
            "pregnancy",
            "active_skin_infection",
            "bleeding_disorder",
            "autoimmune_disease_active",
            "pacemaker",
            "internal_defibrillator",
        ),
        caution_flags=(
            "blood_thinners",
            "recent_facial_surgery",
            "diabetes_uncontrolled",
            "immunosuppressed",
        ),
    ),
    ContraindicationRule(
        treatment="PDO Thread Lift",
        absolute_red_flags=(
            "autoimmune_disease_active",
            "active_infection",
            "pregnancy",
            "blood_clotting_disorder",
            "keloid_history",
            "active_dental_infection",
        ),
        caution_flags=(
            "blood_thinners",
            "recent_facial_surgery",
            "diabetes_uncontrolled",
        ),
    ),
    ContraindicationRule(
        treatment="DiamondGlow",
        absolute_red_flags=(
            "active_skin_infection",
            "active_herpes_outbreak",
            "open_wounds",
        ),
        caution_flags=(
            "retinol_48h",
            "recent_botox_fillers_14days",
            "sunburn",
            "rosacea_active",
            "eczema_psoriasis",
        ),
    ),
    ContraindicationRule(
        treatment="Facials",
        absolute_red_flags=(
            "active_skin_infection",
            "active_herpes_outbreak",
            "open_wounds",
        ),
        caution_flags=(
            "retinol_48h",
            "recent_deep_peel",
            "sunburn",
            "rosacea_active",
        ),
    ),
    ContraindicationRule(
        treatment="Chemical Peels",
        absolute_red_flags=(
            "pregnancy",
            "active_herpes_outbreak",
            "open_wounds",
            "accutane_12months",
        ),
        caution_flags=(
            "retinol_48h",
            "recent_waxing",
            "eczema_psoriasis",
            "fitzpatrick_v_vi",
        ),
    ),
    ContraindicationRule(
        treatment="Anti-Aging Treatments",
        absolute_red_flags=(
            "pregnancy",
            "active_skin_infection",
        ),
        caution_flags=(
            "retinol_48h",
            "recent_tan",
            "autoimmune_disease",
        ),
    ),
)


# Peptide therapies
PEPTIDE_CONTRAINDICATIONS: tuple[ContraindicationRule, ...] = (
    ContraindicationRule(
        treatment="BPC-157",
        absolute_red_flags=(
            "active_malignancy",
            "tumor_history",
            "kidney_disease_stage3plus",
        ),
        caution_flags=(
            "diabetes_uncontrolled",
            "cardiovascular_disease",
            "autoimmune_flare",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP"),
    ),
    ContraindicationRule(
        treatment="GHK-Cu",
        absolute_red_flags=(
            "active_malignancy",
            "copper_sensitivity",
        ),
        caution_flags=(
            "wilson_disease",
            "liver_disease",
        ),
    ),
    ContraindicationRule(
        treatment="Epithalon",
        absolute_red_flags=(
            "active_malignancy",
            "tumor_history",
            "pregnancy",
        ),
        caution_flags=(
            "autoimmune_disease",
            "hormone_sensitive_conditions",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP", "Thyroid Panel"),
    ),
    ContraindicationRule(
        treatment="TB-500",
        absolute_red_flags=(
            "active_malignancy",
            "tumor_history",
            "pregnancy",
        ),
        caution_flags=(
            "cardiovascular_disease",
            "autoimmune_flare",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP"),
    ),
    ContraindicationRule(
        treatment="Thymosin Alpha-1",
        absolute_red_flags=(
            "organ_transplant_immunosuppressed",
            "active_malignancy",
        ),
        caution_flags=(
            "autoimmune_disease",
            "pregnancy",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP", "Immune Panel"),
    ),
    ContraindicationRule(
        treatment="Ipamorelin",
        absolute_red_flags=(
            "active_malignancy",
            "tumor_history",
            "diabetic_retinopathy",
        ),
        caution_flags=(
            "diabetes_uncontrolled",
            "cardiovascular_disease",
            "carpal_tunnel",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP", "IGF-1", "HbA1c"),
    ),
)


# IV protocols
IV_CONTRAINDICATIONS: tuple[ContraindicationRule, ...] = (
    ContraindicationRule(
        treatment="Glow Drip",
        absolute_red_flags=(
            "congestive_heart_failure",
            "kidney_failure_esrd",
            "sulfa_allergy",
        ),
        caution_flags=(
            "diabetes",
            "pregnancy",
            "kidney_disease",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP"),
    ),
    ContraindicationRule(
        treatment="NAD+ Infusion",
        absolute_red_flags=(
            "congestive_heart_failure",
            "kidney_failure_esrd",
        ),
        caution_flags=(
            "bipolar_disorder",
            "anxiety_disorder",
            "pregnancy",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP"),
    ),
    ContraindicationRule(
        treatment="Myers Cocktail",
        absolute_red_flags=(
            "congestive_heart_failure",
            "kidney_failure_esrd",
            "g6pd_deficiency",
        ),
        caution_flags=(
            "diabetes",
            "pregnancy",
            "magnesium_sensitivity",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP"),
    ),
    ContraindicationRule(
        treatment="Glutathione Push",
        absolute_red_flags=(
            "sulfa_allergy",
            "asthma_severe",
        ),
        caution_flags=(
            "pregnancy",
            "breastfeeding",
        ),
    ),
    ContraindicationRule(
        treatment="Vitamin C Drip",
        absolute_red_flags=(
            "g6pd_deficiency",
            "kidney_failure_esrd",
            "hemochromatosis",
            "oxalate_kidney_stones",
        ),
        caution_flags=(
            "kidney_disease",
            "diabetes",
            "pregnancy",
        ),
        requires_lab_work=True,
        lab_work_type=("CBC", "CMP", "G6PD Screen"),
    ),
)


_BIOSTIMULATOR_AFTER_FILLER = "Wait 4 weeks after dermal filler before biostimulator in the same area."
_BIOSTIMULATOR_SAME_DAY_RF = "Do not combine biostimulators with same-day radiofrequency treatments."

TREATMENT_INTERACTIONS: tuple[TreatmentInteractionRule, ...] = (
    TreatmentInteractionRule(
        treatment="Sculptra",
        incompatible_with=("Dermal Fillers", "Radiesse"),
        wait_period_days=28,
        warning_message=_BIOSTIMULATOR_AFTER_FILLER,
    ),
    TreatmentInteractionRule(
        treatment="Radiesse",
        incompatible_with=("Dermal Fillers", "Sculptra"),
        wait_period_days=28,
        warning_message=_BIOSTIMULATOR_AFTER_FILLER,
    ),
    TreatmentInteractionRule(
        treatment="Dermaplaning",
        incompatible_with=("Chemical Peel",),
        wait_period_days=1,
        warning_message=(
            "Do not schedule dermaplaning on the same day as a deep chemical peel "
            "to avoid over-exfoliation."
        ),
    ),
    TreatmentInteractionRule(
        treatment="Sculptra",
        incompatible_with=("Morpheus8",),
        wait_period_days=0,
        warning_message=_BIOSTIMULATOR_SAME_DAY_RF,
    ),
    TreatmentInteractionRule(
        treatment="Radiesse",
        incompatible_with=("Morpheus8",),
        wait_period_days=0,
        warning_message=_BIOSTIMULATOR_SAME_DAY_RF,
    ),
)


TREATMENT_RECOMMENDATIONS: tuple[TreatmentRecommendationRule, ...] = (
    TreatmentRecommendationRule(
        trigger_treatment="Morpheus8",
        recommend_treatment="Red Light Therapy",
        reason="LED/Red Light therapy post-microneedling reduces inflammation and accelerates healing.",
        is_post_care=True,
    ),
    TreatmentRecommendationRule(
        trigger_treatment="Microneedling",
        recommend_treatment="Exosome Therapy",
        reason="Exosomes applied after microneedling can speed up recovery by up to 50%.",
        is_post_care=True,
    ),
    TreatmentRecommendationRule(
        trigger_treatment="Microneedling",
        recommend_treatment="Red Light Therapy",
        reason="LED therapy post-procedure reduces redness and promotes faster healing.",
        is_post_care=True,
    ),
    TreatmentRecommendationRule(
        trigger_treatment="Chemical Peel",
        recommend_treatment="Red Light Therapy",
        reason="Red light therapy accelerates skin recovery after chemical exfoliation.",
        is_post_care=True,
    ),
)
