"""Pydantic models for structured transcript analysis."""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

VIDEO_TYPE_PATIENT_STORY = "patient story"
VIDEO_TYPE_KOL_INTERVIEW = "kol interview"
VIDEO_TYPE_INFORMATIONAL = "Informational"
VIDEO_TYPE_NEWS_BULLETIN = "news bulletin"

TEXT_FIELDS = (
    "video_type",
    "name",
    "current_age",
    "onset_age",
    "sex",
    "location",
    "key_opinion",
    "topic_of_information",
    "details_of_information",
    "headline",
    "summary_of_news",
)
LIST_FIELDS = ("symptoms", "challenges_faced_during_diagnosis")


class AnalysisResult(BaseModel):
    """Fixed record shape produced from a free-form LLM reply.

    Which optional fields are meaningful depends on ``video_type``: patient
    demographics and history for a patient story, ``key_opinion`` for a KOL
    interview, topic and details for informational content, headline and
    summary for a news bulletin. Field aliases match the keys the prompt asks
    the model to emit.
    """

    model_config = ConfigDict(populate_by_name=True)

    video_type: str
    name: Optional[str] = None
    current_age: Optional[str] = None
    onset_age: Optional[str] = None
    sex: Optional[str] = None
    location: Optional[str] = None
    symptoms: Optional[list[Any]] = None
    medical_history_of_patient: Any = Field(default=None, alias="medicalHistoryOfPatient")
    family_medical_history: Any = Field(default=None, alias="familyMedicalHistory")
    challenges_faced_during_diagnosis: Optional[list[Any]] = Field(
        default=None, alias="challengesFacedDuringDiagnosis"
    )
    key_opinion: Optional[str] = None
    topic_of_information: Optional[str] = Field(default=None, alias="topicOfInformation")
    details_of_information: Optional[str] = Field(default=None, alias="detailsOfInformation")
    headline: Optional[str] = None
    summary_of_news: Optional[str] = Field(default=None, alias="summaryOfNews")

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        # Models often answer ages as numbers.
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (bool, int, float)):
            return str(value)
        return json.dumps(value)

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _require_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else None


class StoredAnalysis(AnalysisResult):
    """Analysis row keyed by video identifier."""

    video_id: str
