"""Turn free-form LLM replies into AnalysisResult records."""

import json
import re
from typing import Any

import structlog

from app.core.logging import preview
from app.models.analysis import (
    VIDEO_TYPE_INFORMATIONAL,
    VIDEO_TYPE_PATIENT_STORY,
    AnalysisResult,
)
from app.services.analysis.exceptions import LLMResponseError

logger = structlog.get_logger(__name__)

MULTIPLE_PATIENTS = "Multiple Patients"
HISTORY_SEPARATOR = "; "

_THINK_PATTERN = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_OPENING_FENCE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\n?```$")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")

# (snake_case field, camelCase key the prompt asks for)
_LIST_KEYS = {
    "symptoms": ("symptoms", "symptoms"),
    "challenges": ("challenges_faced_during_diagnosis", "challengesFacedDuringDiagnosis"),
}
_HISTORY_KEYS = {
    "medical_history_of_patient": "medicalHistoryOfPatient",
    "family_medical_history": "familyMedicalHistory",
}


def clean_llm_response(content: str) -> str:
    """Strip reasoning blocks, Markdown code fences and trailing commas."""
    text = _THINK_PATTERN.sub("", content).strip()
    text = _OPENING_FENCE.sub("", text)
    text = _CLOSING_FENCE.sub("", text).strip()
    return _TRAILING_COMMA.sub(r"\1", text)


def parse_llm_json(content: str) -> Any:
    """Clean and parse a reply.

    Raises:
        LLMResponseError: reply is empty or not valid JSON
    """
    if not content or not content.strip():
        raise LLMResponseError("LLM returned an empty reply")

    cleaned = clean_llm_response(content)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("llm_json_parse_failed", error=str(e), reply=preview(cleaned, 1000))
        raise LLMResponseError(f"Reply is not valid JSON: {e}") from e


def is_web_source(identifier: str) -> bool:
    """Scraped pages are keyed by their URL."""
    return identifier.startswith("http")


def _pick(item: dict[str, Any], snake: str, camel: str) -> Any:
    value = item.get(camel)
    return item.get(snake) if value is None else value


def _to_result(item: dict[str, Any], default_type: str) -> AnalysisResult:
    data = dict(item)
    data["video_type"] = item.get("video_type") or default_type
    return AnalysisResult.model_validate(data)


def _union_into(target: list[Any], seen: set[str], values: list[Any]) -> None:
    for value in values:
        key = json.dumps(value, sort_keys=True, default=str)
        if key not in seen:
            seen.add(key)
            target.append(value)


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def merge_patient_results(patients: list[dict[str, Any]]) -> AnalysisResult:
    """Collapse several extracted subjects into a single patient-story record.

    Symptoms and diagnostic challenges are unioned, history fields are
    joined with '; ', location comes from the first subject that has one.
    Ages and sex are not carried over.
    """
    symptoms: list[Any] = []
    challenges: list[Any] = []
    seen_symptoms: set[str] = set()
    seen_challenges: set[str] = set()
    histories: dict[str, list[str]] = {field: [] for field in _HISTORY_KEYS}
    location = None

    for patient in patients:
        patient_symptoms = _pick(patient, *_LIST_KEYS["symptoms"])
        if isinstance(patient_symptoms, list):
            _union_into(symptoms, seen_symptoms, patient_symptoms)

        patient_challenges = _pick(patient, *_LIST_KEYS["challenges"])
        if isinstance(patient_challenges, list):
            _union_into(challenges, seen_challenges, patient_challenges)

        for field, camel in _HISTORY_KEYS.items():
            value = _pick(patient, field, camel)
            if value:
                histories[field].append(_as_text(value))

        if not location and patient.get("location"):
            location = patient["location"]

    name = MULTIPLE_PATIENTS if len(patients) > 1 else patients[0].get("name")

    return AnalysisResult(
        video_type=VIDEO_TYPE_PATIENT_STORY,
        name=name,
        location=location,
        symptoms=symptoms,
        challenges_faced_during_diagnosis=challenges,
        medical_history_of_patient=HISTORY_SEPARATOR.join(histories["medical_history_of_patient"]) or None,
        family_medical_history=HISTORY_SEPARATOR.join(histories["family_medical_history"]) or None,
    )


def normalize_analysis(
    identifier: str,
    parsed: Any,
) -> AnalysisResult | list[AnalysisResult] | None:
    """Shape a parsed reply by source.

    Web pages always produce a list, each entry defaulting to a patient
    story. Videos produce one record: arrays are merged, a bare object
    defaults to informational content.
    """
    if is_web_source(identifier):
        if isinstance(parsed, dict):
            parsed = [parsed]
        if not isinstance(parsed, list):
            logger.warning("analysis_unexpected_shape", video_id=identifier, shape=type(parsed).__name__)
            return None
        return [
            _to_result(item, VIDEO_TYPE_PATIENT_STORY)
            for item in parsed
            if isinstance(item, dict)
        ]

    if isinstance(parsed, list):
        patients = [item for item in parsed if isinstance(item, dict)]
        if not patients:
            return None
        return merge_patient_results(patients)

    if isinstance(parsed, dict):
        return _to_result(parsed, VIDEO_TYPE_INFORMATIONAL)

    logger.warning("analysis_unexpected_shape", video_id=identifier, shape=type(parsed).__name__)
    return None
