"""Pydantic models for saved searches."""

from datetime import datetime

from pydantic import BaseModel, Field

DEFAULT_USER_ID = "default_user"


class SearchConfigCreate(BaseModel):
    """Schema for creating or refreshing a saved search."""

    search_name: str = Field(..., description="Unique, user-chosen label")
    search_phrase: str = Field(..., description="Free-text query, comma-joined when several")
    user_id: str = Field(default=DEFAULT_USER_ID)


class SearchConfig(SearchConfigCreate):
    """Stored saved search."""

    id: int
    creation_date: datetime

    model_config = {"from_attributes": True}
