# src/consejo/services/rules.py
"""Threshold rules deciding how votes move requests and petitions through their lifecycle.

Every function here is pure and total over non-negative integers: no I/O, no
clock, no ambient configuration. Callers load the policy row once per request
and pass it in.
"""

from __future__ import annotations

from typing import Final, Protocol

from consejo.models.membership import MembershipRequestState
from consejo.models.petition import PetitionState
from consejo.models.vote import VoteChoice

__all__ = [
    "PetitionPolicy",
    "TallyDelta",
    "approval_percentage",
    "required_approvals",
    "resolve_membership_state",
    "resolve_petition_state",
    "tally_delta",
]

# (upper bound on population, approvals required), checked in order.
_POPULATION_TIERS: Final[tuple[tuple[int, int], ...]] = (
    (100, 1),
    (1_000, 1),
    (3_000, 2),
    (5_000, 3),
    (10_000, 5),
)
_LARGE_COMMUNITY_REQUIRED: Final[int] = 10

TallyDelta = tuple[int, int]


class PetitionPolicy(Protocol):
    """The slice of the policy row petition resolution reads."""

    min_votes_petition: int
    approval_percentage: int


def required_approvals(total_user_count: int) -> int:
    """Return how many approve votes a membership request needs.

    The requirement rises with the size of the community; it never decreases as
    the population grows.
    """
    for upper_bound, required in _POPULATION_TIERS:
        if total_user_count <= upper_bound:
            return required
    return _LARGE_COMMUNITY_REQUIRED


def resolve_membership_state(
    approvals: int,
    rejections: int,
    required: int,
) -> MembershipRequestState:
    """Map a membership request's tallies to its state.

    A requirement of zero approves immediately. Approvals are checked before
    rejections, so satisfying both in one update resolves to approved.
    """
    if required == 0:
        return MembershipRequestState.APPROVED
    if approvals >= required:
        return MembershipRequestState.APPROVED
    if rejections >= required:
        return MembershipRequestState.REJECTED
    return MembershipRequestState.PENDING


def approval_percentage(approvals: int, rejections: int) -> int:
    """Return approvals as a whole percentage of counted votes, rounding half up.

    Integer arithmetic keeps ``x.5`` cases exact; zero counted votes yield 0.
    """
    total = approvals + rejections
    if total == 0:
        return 0
    return (200 * approvals + total) // (2 * total)


def resolve_petition_state(
    approvals: int,
    rejections: int,
    config: PetitionPolicy,
) -> PetitionState:
    """Map a petition's tallies to ``in_review``, ``approved`` or ``not_approved``."""
    total = approvals + rejections
    if total < config.min_votes_petition:
        return PetitionState.IN_REVIEW
    if approval_percentage(approvals, rejections) >= config.approval_percentage:
        return PetitionState.APPROVED
    return PetitionState.NOT_APPROVED


def _contribution(choice: VoteChoice | None) -> TallyDelta:
    if choice == VoteChoice.APPROVE:
        return 1, 0
    if choice == VoteChoice.REJECT:
        return 0, 1
    return 0, 0


def tally_delta(previous: VoteChoice | None, new: VoteChoice) -> TallyDelta:
    """Return ``(approvals, rejections)`` adjustments for replacing ``previous`` with ``new``.

    ``previous`` is None for a first vote. ``discuss`` counts toward neither side,
    so switching approve -> reject yields ``(-1, +1)``.
    """
    old_approve, old_reject = _contribution(previous)
    new_approve, new_reject = _contribution(new)
    return new_approve - old_approve, new_reject - old_reject
