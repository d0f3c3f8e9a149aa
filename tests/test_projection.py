"""Tests for safety status projection and demographic folding."""

import pytest

from clinic_safety.safety.demographics import demographic_condition_ids, merge_patient_conditions
from clinic_safety.safety.projection import (
    annotate_treatment_plan,
    build_safety_interlocks,
    plan_needs_reassessment,
    status_is_current,
)
from clinic_safety.schemas.safety import (
    ClinicalProcedure,
    InterlockType,
    IVOptimization,
    PatientDemographics,
    PeptideTherapy,
    TreatmentPlan,
)


@pytest.fixture
def plan():
    return TreatmentPlan(
        clinical_roadmap=[
            ClinicalProcedure(name="Morpheus8", benefit="Tightening", price="$900"),
            ClinicalProcedure(name="IPL"),
        ],
        peptide_therapy=[PeptideTherapy(name="BPC-157")],
        iv_optimization=[IVOptimization(name="Myers Cocktail")],
    )


@pytest.mark.parametrize(
    "fitzpatrick, expected",
    [(None, []), ("I", []), ("III", []), ("IV", ["fitzpatrick_iv"]), ("V", ["fitzpatrick_v_vi"]), ("VI", ["fitzpatrick_v_vi"])],
)
def test_demographic_condition_ids(fitzpatrick, expected):
    assert demographic_condition_ids(PatientDemographics(fitzpatrick_type=fitzpatrick)) == expected


def test_merge_patient_conditions_dedupes_in_order():
    merged = merge_patient_conditions(
        ["recent_tan", "pregnancy", "recent_tan", "fitzpatrick_v_vi"],
        PatientDemographics(fitzpatrick_type="VI"),
    )
    assert merged == ["recent_tan", "pregnancy", "fitzpatrick_v_vi"]


def test_annotate_sets_status_on_every_item(plan):
    annotated = annotate_treatment_plan(plan, ["pregnancy"], has_lab_work=False)

    morpheus, ipl = annotated.clinical_roadmap
    assert morpheus.safety_status.is_blocked
    assert morpheus.safety_status.explainable_reason.startswith("Morpheus8 is contraindicated")
    assert morpheus.benefit == "Tightening"
    assert ipl.safety_status.is_blocked
    assert annotated.peptide_therapy[0].safety_status.is_conditional
    myers = annotated.iv_optimization[0].safety_status
    assert myers.has_cautions and not myers.is_blocked
    assert myers.explainable_reason == ""

    # Input plan is untouched.
    assert all(item.safety_status is None for item in plan.items())


def test_demographics_fold_into_assessment(plan):
    annotated = annotate_treatment_plan(plan, [], has_lab_work=True, demographics=PatientDemographics(fitzpatrick_type="V"))

    ipl = annotated.clinical_roadmap[1].safety_status
    assert ipl.is_blocked
    assert ipl.blocked_reasons == ["Fitzpatrick Skin Type V or VI (darker skin)"]


def test_stale_status_detected(plan):
    annotated = annotate_treatment_plan(plan, ["blood_thinners"], has_lab_work=False)
    status = annotated.clinical_roadmap[0].safety_status

    assert status_is_current(status, ["blood_thinners"], False)
    assert not status_is_current(status, ["blood_thinners", "pregnancy"], False)
    assert not status_is_current(status, ["blood_thinners"], True)
    assert not status_is_current(None, [], False)

    assert not plan_needs_reassessment(annotated, ["blood_thinners"], False)
    assert plan_needs_reassessment(annotated, [], False)
    assert plan_needs_reassessment(plan, ["blood_thinners"], False)


def test_fingerprint_ignores_condition_order(plan):
    a = annotate_treatment_plan(plan, ["pregnancy", "als"], has_lab_work=False)
    b = annotate_treatment_plan(plan, ["als", "pregnancy"], has_lab_work=False)

    assert a.clinical_roadmap[0].safety_status.input_fingerprint == b.clinical_roadmap[0].safety_status.input_fingerprint


def test_interlocks_for_blocked_treatment(plan):
    annotated = annotate_treatment_plan(plan, ["pregnancy", "recent_tan"], has_lab_work=False)
    interlocks = build_safety_interlocks(annotated.clinical_roadmap[0].safety_status, ["pregnancy", "recent_tan"])

    assert [(i.type, i.label) for i in interlocks] == [
        (InterlockType.blocked, "Pregnant or possibly pregnant"),
        (InterlockType.warning, "Recent sun tan (last 2 weeks)"),
        (InterlockType.cleared, "Pacemaker/defibrillator"),
        (InterlockType.cleared, "Active skin infection"),
    ]


def test_interlocks_for_lab_gated_treatment(plan):
    annotated = annotate_treatment_plan(plan, [], has_lab_work=False)
    interlocks = build_safety_interlocks(annotated.peptide_therapy[0].safety_status, [])

    labels = [i.label for i in interlocks]
    assert labels[0] == "No absolute contraindications detected"
    assert "Lab work required: CBC, CMP" in labels
    assert labels[-3:] == ["Pacemaker/defibrillator", "Active skin infection", "Pregnancy"]


def test_interlocks_without_status():
    interlocks = build_safety_interlocks(None, ["pacemaker"])
    assert [i.label for i in interlocks] == ["Standard safety protocols apply", "Active skin infection", "Pregnancy"]
