# src/consejo/services/membership.py
"""Membership request submission and the request listing view."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from sqlalchemy import delete, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from consejo.models import (
    MembershipRequest,
    MembershipRequestState,
    MembershipState,
    MembershipVote,
    User,
)
from consejo.services.errors import MembershipError, TargetFinalizedError, TargetNotFoundError
from consejo.services.rules import required_approvals, resolve_membership_state
from consejo.services.voting import apply_membership_cascade, count_users

logger = logging.getLogger(__name__)

__all__ = [
    "RealRequest",
    "RequestListing",
    "SyntheticRequest",
    "delete_request",
    "list_requests",
    "open_request_for_applicant",
    "submit_request",
]


@dataclass(frozen=True)
class RealRequest:
    """A persisted membership request."""

    request: MembershipRequest
    kind: Literal["real"] = field(default="real", init=False)


@dataclass(frozen=True)
class SyntheticRequest:
    """Placeholder for a pending applicant who never filed a request.

    It has no id and no votes; voting on it materializes a real request.
    """

    applicant: User
    kind: Literal["synthetic"] = field(default="synthetic", init=False)


RequestListing = RealRequest | SyntheticRequest


def _find_request_for(db: Session, applicant_user_id: int) -> MembershipRequest | None:
    return (
        db.query(MembershipRequest)
        .filter(MembershipRequest.applicant_user_id == applicant_user_id)
        .one_or_none()
    )


def _resolve_on_creation(db: Session, request: MembershipRequest, now: datetime) -> None:
    # Only a zero requirement can resolve a request that has no votes yet.
    state = resolve_membership_state(0, 0, required_approvals(count_users(db)))
    if state != MembershipRequestState.PENDING:
        request.state = state
        request.resolved_at = now
        db.flush()
        logger.info("Membership request %s auto-resolved as %s", request.id, state.value)
        apply_membership_cascade(db, request)


def submit_request(
    db: Session,
    applicant: User,
    text: str,
    photo_url: str | None,
    now: datetime,
) -> MembershipRequest:
    """File a membership request for a pending applicant.

    Raises:
        MembershipError: The user is not awaiting approval or already filed one.
    """
    if applicant.membership_state != MembershipState.PENDING_APPROVAL:
        raise MembershipError(
            f"Only applicants pending approval can submit a request "
            f"(current state: {applicant.membership_state.value})"
        )
    if _find_request_for(db, applicant.id) is not None:
        raise MembershipError("A membership request was already submitted")

    request = MembershipRequest(
        applicant_user_id=applicant.id,
        text=text,
        photo_url=photo_url,
        state=MembershipRequestState.PENDING,
        created_at=now,
    )
    try:
        with db.begin_nested():
            db.add(request)
    except IntegrityError as err:
        raise MembershipError("A membership request was already submitted") from err

    logger.info("User %s submitted membership request %s", applicant.id, request.id)
    _resolve_on_creation(db, request, now)
    return request


def open_request_for_applicant(
    db: Session,
    applicant_user_id: int,
    now: datetime,
) -> MembershipRequest:
    """Return the applicant's request, creating an empty one for a synthetic entry.

    Raises:
        TargetNotFoundError: No such user.
        TargetFinalizedError: The user is no longer awaiting approval.
    """
    existing = _find_request_for(db, applicant_user_id)
    if existing is not None:
        return existing

    applicant = db.get(User, applicant_user_id)
    if applicant is None:
        raise TargetNotFoundError(f"User {applicant_user_id} not found")
    if applicant.membership_state != MembershipState.PENDING_APPROVAL:
        raise TargetFinalizedError(
            f"User {applicant_user_id} is already {applicant.membership_state.value}"
        )

    request = MembershipRequest(
        applicant_user_id=applicant_user_id,
        text="",
        state=MembershipRequestState.PENDING,
        created_at=now,
    )
    try:
        with db.begin_nested():
            db.add(request)
    except IntegrityError:
        existing = _find_request_for(db, applicant_user_id)
        if existing is None:  # pragma: no cover - constraint violated by something else
            raise
        return existing

    logger.info("Materialized membership request %s for applicant %s", request.id, applicant_user_id)
    return request


def list_requests(
    db: Session,
    state: MembershipRequestState | None = None,
) -> list[RequestListing]:
    """Return real requests (newest first) followed by synthetic placeholders.

    Synthetic entries cover users still ``pending_approval`` with no request
    row; they are always pending, so a non-pending ``state`` filter drops them.
    """
    query = db.query(MembershipRequest)
    if state is not None:
        query = query.filter(MembershipRequest.state == state)
    real: list[RequestListing] = [
        RealRequest(request=row)
        for row in query.order_by(MembershipRequest.created_at.desc(), MembershipRequest.id.desc())
    ]

    if state not in (None, MembershipRequestState.PENDING):
        return real

    has_request = exists().where(MembershipRequest.applicant_user_id == User.id)
    pending_without_request = (
        db.query(User)
        .filter(
            User.membership_state == MembershipState.PENDING_APPROVAL,
            ~has_request,
        )
        .order_by(User.created_at.desc(), User.id.desc())
    )
    synthetic: list[RequestListing] = [SyntheticRequest(applicant=user) for user in pending_without_request]
    return real + synthetic


def delete_request(db: Session, request_id: int) -> None:
    """Remove a membership request and its votes.

    The applicant's membership state is left as it is; a still pending
    applicant shows up again as a synthetic entry.
    """
    request = db.get(MembershipRequest, request_id)
    if request is None:
        raise TargetNotFoundError(f"Membership request {request_id} not found")

    db.execute(
        delete(MembershipVote)
        .where(MembershipVote.request_id == request_id)
        .execution_options(synchronize_session=False)
    )
    db.delete(request)
    db.flush()
    logger.info("Membership request %s deleted by moderation", request_id)
