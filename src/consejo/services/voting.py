# src/consejo/services/voting.py
"""Vote recording and aggregation for membership requests and petitions.

One call to :meth:`VotingService.cast_membership_vote` or
:meth:`VotingService.cast_petition_vote` is one logical vote. Everything it
does (budget spend, vote upsert, tally adjust, state resolution, cascade) is
flushed into the caller's transaction; the caller commits on success and rolls
back on any :class:`~consejo.services.errors.VotingError`, so a refused vote
leaves no trace.

The target row is locked for the duration of the transaction, which
serializes concurrent votes on the same request or petition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from consejo.core.settings import settings
from consejo.db.time import start_of_utc_day, utcnow
from consejo.models import (
    MembershipRequest,
    MembershipRequestState,
    MembershipState,
    MembershipVote,
    Petition,
    PetitionState,
    PetitionVote,
    PolicyConfig,
    User,
    VoteChoice,
)
from consejo.services.errors import (
    CapacityExhaustedError,
    RateLimitedError,
    SelfVoteForbiddenError,
    TargetFinalizedError,
    TargetNotFoundError,
    VoteValidationError,
)
from consejo.services.policy import get_policy
from consejo.services.rules import (
    required_approvals,
    resolve_membership_state,
    resolve_petition_state,
    tally_delta,
)
from consejo.services.vote_budget import Clock, VoteBudgetService

logger = logging.getLogger(__name__)

__all__ = [
    "VoteOutcome",
    "VotingService",
    "apply_membership_cascade",
    "count_users",
    "validate_vote",
]

_CASCADE_STATES = {
    MembershipRequestState.APPROVED: MembershipState.APPROVED,
    MembershipRequestState.REJECTED: MembershipState.REJECTED,
}


@dataclass(frozen=True)
class VoteOutcome:
    """What a vote did to its target."""

    vote: MembershipVote | PetitionVote
    previous_choice: VoteChoice | None
    state: MembershipRequestState | PetitionState
    approvals: int
    rejections: int
    resolved: bool


def validate_vote(
    choice: VoteChoice,
    comment: str | None,
    *,
    allow_discuss: bool,
) -> str | None:
    """Check a vote payload and return the normalized comment.

    Rejections and discussion votes must explain themselves with a comment of
    at least ``settings.vote_comment_min_length`` characters.

    Raises:
        VoteValidationError: If the choice is not allowed or the comment is missing.
    """
    if choice == VoteChoice.DISCUSS and not allow_discuss:
        raise VoteValidationError("Membership requests accept only approve or reject votes")

    normalized = comment.strip() if comment else None
    if choice in (VoteChoice.REJECT, VoteChoice.DISCUSS):
        if not normalized or len(normalized) < settings.vote_comment_min_length:
            raise VoteValidationError(
                f"A comment of at least {settings.vote_comment_min_length} characters "
                f"is required to {choice.value}"
            )
    return normalized or None


def count_users(db: Session) -> int:
    """Return the number of registered users, applicants included."""
    return int(db.query(func.count(User.id)).scalar() or 0)


def apply_membership_cascade(db: Session, request: MembershipRequest) -> None:
    """Propagate a resolved request to its applicant's membership state.

    Replaying it for an already-propagated resolution changes nothing.
    """
    target_state = _CASCADE_STATES.get(request.state)
    if target_state is None:
        return

    applicant = db.get(User, request.applicant_user_id)
    if applicant is None or applicant.membership_state == target_state:
        return

    applicant.membership_state = target_state
    db.flush()
    logger.info(
        "Applicant %s membership set to %s by request %s",
        applicant.id,
        target_state.value,
        request.id,
    )


class VotingService:
    """Orchestrates a single vote against the threshold rules and vote budget."""

    def __init__(
        self,
        db: Session,
        clock: Clock = utcnow,
        budget: VoteBudgetService | None = None,
    ) -> None:
        self._db = db
        self._clock = clock
        self._budget = budget or VoteBudgetService(db, clock)

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------
    def count_users(self) -> int:
        """Return the total user population used to scale approval requirements."""
        return count_users(self._db)

    def count_approvals_today(self, voter_id: int, now: datetime | None = None) -> int:
        """Count approve votes the voter cast on membership requests since UTC midnight."""
        day_start = start_of_utc_day(now or self._clock())
        return int(
            self._db.query(func.count(MembershipVote.id))
            .filter(
                MembershipVote.voter_user_id == voter_id,
                MembershipVote.choice == VoteChoice.APPROVE,
                MembershipVote.created_at >= day_start,
            )
            .scalar()
            or 0
        )

    def _lock_target(self, model: type[Any], target_id: int) -> Any:
        target = (
            self._db.query(model)
            .filter(model.id == target_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if target is None:
            raise TargetNotFoundError(f"{model.__name__} {target_id} not found")
        return target

    def _find_vote(self, vote_model: type[Any], target_column: str, target_id: int, voter_id: int):
        return (
            self._db.query(vote_model)
            .filter(
                getattr(vote_model, target_column) == target_id,
                vote_model.voter_user_id == voter_id,
            )
            .one_or_none()
        )

    def _upsert_vote(
        self,
        vote_model: type[Any],
        target_column: str,
        target_id: int,
        voter_id: int,
        choice: VoteChoice,
        comment: str | None,
        existing: Any,
        now: datetime,
    ) -> tuple[Any, VoteChoice | None, bool]:
        """Insert or update the voter's row.

        Returns:
            ``(vote, previous_choice, inserted)``. A uniqueness violation from a
            concurrent first vote is retried as an update of the winner's row.
        """
        if existing is None:
            vote = vote_model(
                voter_user_id=voter_id,
                choice=choice,
                comment=comment,
                created_at=now,
                updated_at=now,
            )
            setattr(vote, target_column, target_id)
            try:
                with self._db.begin_nested():
                    self._db.add(vote)
            except IntegrityError:
                logger.warning(
                    "Concurrent first vote by user %s on %s %s; retrying as update",
                    voter_id,
                    vote_model.__name__,
                    target_id,
                )
                existing = self._find_vote(vote_model, target_column, target_id, voter_id)
                if existing is None:  # pragma: no cover - constraint violated by something else
                    raise
            else:
                return vote, None, True

        previous = existing.choice
        existing.choice = choice
        existing.comment = comment
        existing.updated_at = now
        self._db.flush()
        return existing, previous, False

    def _adjust_tally(self, model: type[Any], target: Any, delta: tuple[int, int]) -> None:
        """Add ``delta`` to the stored counters in one UPDATE, then reload them."""
        d_approve, d_reject = delta
        if d_approve == 0 and d_reject == 0:
            return
        self._db.execute(
            update(model)
            .where(model.id == target.id)
            .values(
                approval_count=model.approval_count + d_approve,
                rejection_count=model.rejection_count + d_reject,
            )
            .execution_options(synchronize_session=False)
        )
        self._db.refresh(target, attribute_names=["approval_count", "rejection_count"])

    # ------------------------------------------------------------------
    # Membership requests
    # ------------------------------------------------------------------
    def cast_membership_vote(
        self,
        voter: User,
        request_id: int,
        choice: VoteChoice,
        comment: str | None = None,
        config: PolicyConfig | None = None,
    ) -> VoteOutcome:
        """Record ``voter``'s vote on a membership request and resolve it.

        A first vote spends one unit of the voter's budget and, if it is an
        approval, counts against the daily approval cap. Changing an existing
        vote does neither.

        Raises:
            VoteValidationError: Bad choice or missing comment.
            TargetNotFoundError: No such request.
            TargetFinalizedError: The request is already approved or rejected, or
                the applicant is no longer awaiting approval.
            CapacityExhaustedError: The voter's budget is empty.
            RateLimitedError: The voter reached today's approval cap.
        """
        comment = validate_vote(choice, comment, allow_discuss=False)
        config = config or get_policy(self._db)
        now = self._clock()

        request = self._lock_target(MembershipRequest, request_id)
        if request.state != MembershipRequestState.PENDING:
            raise TargetFinalizedError(f"Membership request {request_id} is already {request.state.value}")
        applicant = self._db.get(User, request.applicant_user_id)
        if applicant is None:
            raise TargetNotFoundError(f"Applicant of membership request {request_id} not found")
        if applicant.membership_state != MembershipState.PENDING_APPROVAL:
            # An administrator already decided this applicant's membership.
            raise TargetFinalizedError(
                f"Applicant {applicant.id} is already {applicant.membership_state.value}"
            )

        existing = self._find_vote(MembershipVote, "request_id", request_id, voter.id)
        if existing is None:
            if not self._budget.try_consume(voter.id, config):
                raise CapacityExhaustedError(
                    "No votes available; wait for your vote budget to regenerate"
                )
            if (
                choice == VoteChoice.APPROVE
                and self.count_approvals_today(voter.id, now) >= settings.daily_approval_cap
            ):
                raise RateLimitedError(
                    f"Daily limit of {settings.daily_approval_cap} approvals reached; "
                    "try again after midnight UTC"
                )

        vote, previous, inserted = self._upsert_vote(
            MembershipVote, "request_id", request_id, voter.id, choice, comment, existing, now
        )
        if existing is None and not inserted:
            # Lost an insert race to our own earlier request: this was an edit after all.
            self._budget.refund(voter.id)
        self._adjust_tally(MembershipRequest, request, tally_delta(previous, choice))

        required = required_approvals(self.count_users())
        new_state = resolve_membership_state(
            request.approval_count,
            request.rejection_count,
            required,
        )
        resolved = new_state != MembershipRequestState.PENDING
        if resolved:
            request.state = new_state
            request.resolved_at = now
            self._db.flush()
            logger.info(
                "Membership request %s resolved as %s (%s approvals, %s rejections, %s required)",
                request.id,
                new_state.value,
                request.approval_count,
                request.rejection_count,
                required,
            )
            apply_membership_cascade(self._db, request)

        return VoteOutcome(
            vote=vote,
            previous_choice=previous,
            state=request.state,
            approvals=request.approval_count,
            rejections=request.rejection_count,
            resolved=resolved,
        )

    # ------------------------------------------------------------------
    # Petitions
    # ------------------------------------------------------------------
    def cast_petition_vote(
        self,
        voter: User,
        petition_id: int,
        choice: VoteChoice,
        comment: str | None = None,
        config: PolicyConfig | None = None,
    ) -> VoteOutcome:
        """Record ``voter``'s vote on a petition and resolve it.

        Petition votes do not draw on the vote budget. ``discuss`` votes are
        stored but counted on neither side.

        Raises:
            VoteValidationError: Missing comment on reject or discuss.
            TargetNotFoundError: No such petition.
            SelfVoteForbiddenError: The voter wrote the petition.
            TargetFinalizedError: The petition left review or was closed.
        """
        comment = validate_vote(choice, comment, allow_discuss=True)
        config = config or get_policy(self._db)
        now = self._clock()

        petition = self._lock_target(Petition, petition_id)
        if petition.author_user_id == voter.id:
            raise SelfVoteForbiddenError("You cannot vote on your own petition")
        if petition.state != PetitionState.IN_REVIEW:
            raise TargetFinalizedError(f"Petition {petition_id} is already {petition.state.value}")

        existing = self._find_vote(PetitionVote, "petition_id", petition_id, voter.id)
        vote, previous, _ = self._upsert_vote(
            PetitionVote, "petition_id", petition_id, voter.id, choice, comment, existing, now
        )
        self._adjust_tally(Petition, petition, tally_delta(previous, choice))

        new_state = resolve_petition_state(
            petition.approval_count,
            petition.rejection_count,
            config,
        )
        resolved = new_state != PetitionState.IN_REVIEW
        if resolved:
            petition.state = new_state
            petition.resolved_at = now
            self._db.flush()
            logger.info(
                "Petition %s resolved as %s (%s approvals, %s rejections)",
                petition.id,
                new_state.value,
                petition.approval_count,
                petition.rejection_count,
            )

        return VoteOutcome(
            vote=vote,
            previous_choice=previous,
            state=petition.state,
            approvals=petition.approval_count,
            rejections=petition.rejection_count,
            resolved=resolved,
        )
