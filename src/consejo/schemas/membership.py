# src/consejo/schemas/membership.py
"""Membership request Pydantic schemas."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from consejo.core.settings import settings
from consejo.models.membership import MembershipRequest, MembershipRequestState
from consejo.services.membership import RequestListing, SyntheticRequest


class MembershipRequestCreate(BaseModel):
    """Schema for an applicant filing a request to join."""

    text: str = Field(..., max_length=5000, description="Why the applicant wants to join")
    photo_url: HttpUrl | None = Field(None, description="Optional photo accompanying the request")

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        """Require a minimum amount of text."""
        v = v.strip()
        if len(v) < settings.membership_request_min_length:
            raise ValueError(
                f"Request text must be at least {settings.membership_request_min_length} characters"
            )
        return v


class MembershipRequestResponse(BaseModel):
    """A persisted membership request."""

    kind: Literal["real"] = "real"
    id: int
    applicant_user_id: int
    applicant_display_name: str
    text: str
    photo_url: str | None
    approval_count: int
    rejection_count: int
    state: MembershipRequestState
    created_at: datetime
    resolved_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class SyntheticRequestResponse(BaseModel):
    """A pending applicant without a filed request."""

    kind: Literal["synthetic"] = "synthetic"
    applicant_user_id: int
    applicant_display_name: str
    state: MembershipRequestState = MembershipRequestState.PENDING
    created_at: datetime


MembershipListingResponse = Annotated[
    MembershipRequestResponse | SyntheticRequestResponse,
    Field(discriminator="kind"),
]


def to_listing_response(entry: RequestListing) -> MembershipRequestResponse | SyntheticRequestResponse:
    """Convert a listing entry to its API schema."""
    if isinstance(entry, SyntheticRequest):
        return SyntheticRequestResponse(
            applicant_user_id=entry.applicant.id,
            applicant_display_name=entry.applicant.display_name,
            created_at=entry.applicant.created_at,
        )
    return to_request_response(entry.request)


def to_request_response(request: MembershipRequest) -> MembershipRequestResponse:
    """Convert a MembershipRequest ORM instance to an API schema."""
    return MembershipRequestResponse(
        id=request.id,
        applicant_user_id=request.applicant_user_id,
        applicant_display_name=request.applicant.display_name,
        text=request.text,
        photo_url=request.photo_url,
        approval_count=request.approval_count,
        rejection_count=request.rejection_count,
        state=request.state,
        created_at=request.created_at,
        resolved_at=request.resolved_at,
    )


__all__ = [
    "MembershipListingResponse",
    "MembershipRequestCreate",
    "MembershipRequestResponse",
    "SyntheticRequestResponse",
    "to_listing_response",
    "to_request_response",
]
