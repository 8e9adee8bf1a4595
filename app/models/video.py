"""Pydantic models for videos."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

UNKNOWN_SEARCH_NAME = "unknown"


class VideoMetadata(BaseModel):
    """Video metadata as delivered by the search paginator or a direct lookup."""

    video_id: str = Field(..., description="Source-assigned video identifier")
    title: str = Field(default="", description="Video title")
    description: str = Field(default="")
    published_at: Optional[datetime] = None
    duration_seconds: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    url: str = Field(..., description="Canonical URL")
    thumbnail_url: Optional[str] = None
    channel_name: str = Field(default="")
    search_name: Optional[str] = Field(
        default=None,
        description="Label of the saved search that produced this video",
    )


class Video(VideoMetadata):
    """Stored video row."""

    search_name: str = UNKNOWN_SEARCH_NAME

    model_config = {"from_attributes": True}


class VideoSearchOptions(BaseModel):
    """Options for a paginated video search."""

    max_results: Optional[int] = Field(
        default=None,
        ge=0,
        description="Stop after this many videos have been delivered",
    )
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    years_back: Optional[int] = Field(default=None, ge=1)
    order: Optional[str] = None
    language: Optional[str] = None
    region_code: Optional[str] = None
