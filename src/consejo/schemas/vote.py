# src/consejo/schemas/vote.py
"""Vote-related Pydantic schemas."""

from typing import ClassVar

from pydantic import BaseModel, Field, model_validator

from consejo.models.vote import VoteChoice
from consejo.services.voting import VoteOutcome, validate_vote


class _VoteBase(BaseModel):
    choice: VoteChoice = Field(..., description="approve, reject or discuss")
    comment: str | None = Field(None, max_length=2000, description="Required to reject or discuss")

    allow_discuss: ClassVar[bool] = True

    @model_validator(mode="after")
    def check_comment(self) -> "_VoteBase":
        """Reject payloads the voting rules would refuse, and trim the comment."""
        self.comment = validate_vote(self.choice, self.comment, allow_discuss=self.allow_discuss)
        return self


class PetitionVoteCreate(_VoteBase):
    """Schema for voting on a petition."""


class MembershipVoteCreate(_VoteBase):
    """Schema for voting on a membership request (no ``discuss``)."""

    allow_discuss: ClassVar[bool] = False


class VoteResponse(BaseModel):
    """Result of a vote, including the target's updated tally."""

    vote_id: int
    choice: VoteChoice
    comment: str | None
    previous_choice: VoteChoice | None
    state: str
    approvals: int
    rejections: int
    resolved: bool


class MyVoteResponse(BaseModel):
    """The caller's current vote on a target, if any."""

    choice: VoteChoice | None
    comment: str | None = None


class BudgetStatusResponse(BaseModel):
    """Vote budget snapshot for the current user."""

    vote_budget: int
    seconds_until_next: int
    max_vote_budget: int
    regen_interval_minutes: int


def to_vote_response(outcome: VoteOutcome) -> VoteResponse:
    """Convert a recorded vote outcome to an API schema."""
    return VoteResponse(
        vote_id=outcome.vote.id,
        choice=outcome.vote.choice,
        comment=outcome.vote.comment,
        previous_choice=outcome.previous_choice,
        state=outcome.state.value,
        approvals=outcome.approvals,
        rejections=outcome.rejections,
        resolved=outcome.resolved,
    )
