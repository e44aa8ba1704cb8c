"""Report-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from consejo.models.report import ReportState


class ReportCreate(BaseModel):
    """A member's complaint about a petition."""

    description: str = Field(..., min_length=5, max_length=2000)


class ReportUpdate(BaseModel):
    """Moderator changes to a report."""

    state: ReportState | None = None
    description: str | None = Field(None, min_length=5, max_length=2000)

    @model_validator(mode="after")
    def require_changes(self) -> "ReportUpdate":
        if not self.model_dump(exclude_unset=True, exclude_none=True):
            raise ValueError("No report fields to update")
        return self


class ReportResponse(BaseModel):
    id: int
    author_user_id: int
    petition_id: int
    description: str
    state: ReportState
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
