"""Fold patient demographics into the condition set before evaluation."""

from __future__ import annotations

from collections.abc import Iterable

from clinic_safety.schemas.safety import FitzpatrickType, PatientDemographics

_FITZPATRICK_CONDITIONS = {
    FitzpatrickType.IV: "fitzpatrick_iv",
    FitzpatrickType.V: "fitzpatrick_v_vi",
    FitzpatrickType.VI: "fitzpatrick_v_vi",
}


def demographic_condition_ids(demographics: PatientDemographics | None) -> list[str]:
    """Condition ids implied by demographics. Types I-III imply none."""
    if demographics is None or demographics.fitzpatrick_type is None:
        return []
    condition = _FITZPATRICK_CONDITIONS.get(demographics.fitzpatrick_type)
    return [condition] if condition else []


def merge_patient_conditions(
    conditions: Iterable[str],
    demographics: PatientDemographics | None = None,
) -> list[str]:
    """Declared conditions followed by demographic ones, de-duplicated, order kept."""
    if isinstance(conditions, str):
        raise TypeError("Patient conditions must be a collection of condition ids, not a string")
    merged = list(dict.fromkeys(conditions))
    for condition in demographic_condition_ids(demographics):
        if condition not in merged:
            merged.append(condition)
    return merged
