"""
JSON schemas for documents that cross a trust boundary.

- ENCRYPTED_PAYLOAD_SCHEMA: the exact on-disk shape of an encrypted record,
  used to tell encrypted records from legacy plaintext JSON
- HEALTH_CONDITION_CATALOG_SCHEMA: the static condition catalog data file
- PATIENT_INTAKE_SCHEMA: intake documents entering the assessment pipeline
"""

ENCRYPTED_PAYLOAD_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Encrypted payload envelope",
    "type": "object",
    "required": ["ciphertext", "iv", "tag", "version"],
    "properties": {
        "ciphertext": {"type": "string"},
        "iv": {"type": "string"},
        "tag": {"type": "string"},
        "version": {"type": "integer"},
    },
    "additionalProperties": False,
}


HEALTH_CONDITION_CATALOG_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Health condition catalog",
    "type": "array",
    "items": {
        "type": "object",
        "required": ["id", "label", "category", "severity"],
        "properties": {
            "id": {"type": "string", "pattern": "^[a-z0-9_]+$"},
            "label": {"type": "string", "minLength": 1},
            "category": {
                "type": "string",
                "enum": ["medical", "medication", "allergy", "lifestyle", "lab"],
            },
            "severity": {"type": "string", "enum": ["absolute", "caution"]},
        },
        "additionalProperties": False,
    },
}


_TREATMENT_ITEM: dict = {
    "type": "object",
    "required": ["name"],
    "properties": {"name": {"type": "string", "minLength": 1}},
}


PATIENT_INTAKE_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Patient intake for safety assessment",
    "type": "object",
    "required": ["lead_id", "conditions", "has_recent_lab_work", "plan"],
    "properties": {
        "lead_id": {"type": "string", "minLength": 1},
        "conditions": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
        "has_recent_lab_work": {"type": "boolean"},
        "lab_work_date": {
            "type": "string",
            "pattern": "^\\d{4}-\\d{2}-\\d{2}$",
            "description": "ISO 8601 date (YYYY-MM-DD).",
        },
        "demographics": {
            "type": "object",
            "properties": {
                "fitzpatrick_type": {
                    "type": "string",
                    "enum": ["I", "II", "III", "IV", "V", "VI"],
                },
            },
            "additionalProperties": False,
        },
        "plan": {
            "type": "object",
            "properties": {
                "clinical_roadmap": {"type": "array", "items": _TREATMENT_ITEM},
                "peptide_therapy": {"type": "array", "items": _TREATMENT_ITEM},
                "iv_optimization": {"type": "array", "items": _TREATMENT_ITEM},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}
