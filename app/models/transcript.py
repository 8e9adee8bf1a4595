"""Transcript models."""

from pydantic import BaseModel, Field

TRANSCRIPT_UNAVAILABLE = "NOT AVAILABLE"
LANGUAGE_AUTO = "auto"
LANGUAGE_NONE = "none"


class TranscriptRecord(BaseModel):
    """Transcript text for one video."""

    video_id: str = Field(..., description="Video identifier")
    text: str = Field(..., description="Full transcript text or the unavailable sentinel")
    language: str = Field(..., description="ISO code, 'auto', 'unknown' or 'none'")

    @classmethod
    def unavailable(cls, video_id: str) -> "TranscriptRecord":
        """Record marking a video with no transcript in any language."""
        return cls(video_id=video_id, text=TRANSCRIPT_UNAVAILABLE, language=LANGUAGE_NONE)

    @property
    def available(self) -> bool:
        return self.text != TRANSCRIPT_UNAVAILABLE and bool(self.text.strip())
