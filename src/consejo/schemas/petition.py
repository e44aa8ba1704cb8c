# src/consejo/schemas/petition.py
"""Petition-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from consejo.models.petition import PetitionState

MAX_PETITION_IMAGES = 5


class PetitionCreate(BaseModel):
    """Schema for creating a new petition."""

    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10, max_length=20000)
    image_urls: list[HttpUrl] = Field(default_factory=list, max_length=MAX_PETITION_IMAGES)
    video_url: HttpUrl | None = None


class PetitionResponse(BaseModel):
    """Schema for petition data returned by the API."""

    id: int
    author_user_id: int
    title: str
    description: str
    image_urls: list[str]
    video_url: str | None
    approval_count: int
    rejection_count: int
    state: PetitionState
    likes: int
    hidden: bool
    created_at: datetime
    resolved_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class PetitionVisibilityUpdate(BaseModel):
    """Admin toggle for hiding a petition."""

    hidden: bool
