# src/consejo/services/errors.py
"""Failures raised by the voting and membership services.

Each error carries the HTTP status the API layer should answer with; the
services raise these and never build HTTP responses themselves.
"""

from __future__ import annotations

from fastapi import status


class VotingError(Exception):
    """Base class for user-facing voting failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class VoteValidationError(VotingError, ValueError):
    """Malformed vote payload, e.g. a rejection without a comment."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class CapacityExhaustedError(VotingError):
    """The voter has no vote budget left until the next regeneration."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class RateLimitedError(VotingError):
    """The voter already used today's approval allowance."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class SelfVoteForbiddenError(VotingError):
    """Authors cannot vote on their own petitions."""

    status_code = status.HTTP_403_FORBIDDEN


class TargetNotFoundError(VotingError):
    """The membership request or petition does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class TargetFinalizedError(TargetNotFoundError):
    """The target has already been resolved and accepts no further votes."""

    status_code = status.HTTP_409_CONFLICT


class MembershipError(VotingError):
    """A membership request cannot be submitted in the applicant's current state."""

    status_code = status.HTTP_409_CONFLICT


class DuplicateLikeError(VotingError):
    """The user already liked this petition."""

    status_code = status.HTTP_409_CONFLICT


class UserExistsError(VotingError):
    """An account with this e-mail already exists."""

    status_code = status.HTTP_409_CONFLICT
