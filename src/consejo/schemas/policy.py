# src/consejo/schemas/policy.py
"""Voting policy Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PolicyConfigResponse(BaseModel):
    """Current voting policy."""

    min_votes_petition: int
    min_votes_membership_request: int
    approval_percentage: int
    max_vote_budget: int
    regen_interval_minutes: int

    model_config = ConfigDict(from_attributes=True)


class PolicyConfigUpdate(BaseModel):
    """Partial policy update submitted by an administrator."""

    min_votes_petition: int | None = Field(None, ge=0)
    min_votes_membership_request: int | None = Field(None, ge=0)
    approval_percentage: int | None = Field(None, ge=0, le=100)
    max_vote_budget: int | None = Field(None, ge=0)
    regen_interval_minutes: int | None = Field(None, ge=1)

    @model_validator(mode="after")
    def require_changes(self) -> "PolicyConfigUpdate":
        """Refuse empty updates."""
        if not self.model_dump(exclude_unset=True, exclude_none=True):
            raise ValueError("No policy fields to update")
        return self
