# tests/test_voting.py
"""Tests for recording votes and resolving their targets."""

import pytest

from consejo.db.time import as_utc
from consejo.models import (
    MembershipRequestState,
    MembershipState,
    MembershipVote,
    PetitionState,
    PetitionVote,
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
from consejo.services.membership import submit_request
from consejo.services.voting import VotingService, apply_membership_cascade

REJECT_REASON = "Not enough information"


@pytest.fixture()
def voting(db_session, clock, policy) -> VotingService:
    return VotingService(db_session, clock)


@pytest.fixture()
def high_requirement(monkeypatch) -> None:
    """Keep membership requests pending for a few votes."""
    monkeypatch.setattr("consejo.services.voting.required_approvals", lambda total: 3)


def _budget(db_session, user: User) -> int:
    db_session.refresh(user)
    return user.vote_budget


def test_single_approval_admits_applicant_in_small_community(db_session, voting, member, applicant, clock) -> None:
    """One approve vote resolves the request and flips the applicant to approved."""
    request = submit_request(db_session, applicant, "Neighbour for twenty years", None, clock())
    db_session.commit()

    outcome = voting.cast_membership_vote(member, request.id, VoteChoice.APPROVE)
    db_session.commit()

    assert outcome.resolved is True
    assert outcome.state == MembershipRequestState.APPROVED
    assert outcome.approvals == 1
    assert request.state == MembershipRequestState.APPROVED
    assert as_utc(request.resolved_at) == clock()
    db_session.refresh(applicant)
    assert applicant.membership_state == MembershipState.APPROVED
    assert _budget(db_session, member) == 9


def test_rejection_cascades_to_applicant(db_session, voting, member, membership_request, applicant) -> None:
    outcome = voting.cast_membership_vote(member, membership_request.id, VoteChoice.REJECT, REJECT_REASON)
    db_session.commit()

    assert outcome.state == MembershipRequestState.REJECTED
    db_session.refresh(applicant)
    assert applicant.membership_state == MembershipState.REJECTED


@pytest.mark.usefixtures("high_requirement")
def test_membership_vote_switch_nets_out(db_session, voting, member, membership_request) -> None:
    """Switching approve to reject moves one vote across without spending budget again."""
    voting.cast_membership_vote(member, membership_request.id, VoteChoice.APPROVE)
    outcome = voting.cast_membership_vote(member, membership_request.id, VoteChoice.REJECT, REJECT_REASON)
    db_session.commit()

    assert outcome.previous_choice == VoteChoice.APPROVE
    assert (outcome.approvals, outcome.rejections) == (0, 1)
    assert outcome.state == MembershipRequestState.PENDING
    assert db_session.query(MembershipVote).filter_by(request_id=membership_request.id).count() == 1
    assert _budget(db_session, member) == 9


@pytest.mark.usefixtures("high_requirement")
def test_same_choice_revote_updates_comment(db_session, voting, member, membership_request) -> None:
    voting.cast_membership_vote(member, membership_request.id, VoteChoice.REJECT, REJECT_REASON)
    outcome = voting.cast_membership_vote(member, membership_request.id, VoteChoice.REJECT, "Changed my reasoning")
    db_session.commit()

    assert outcome.rejections == 1
    assert outcome.vote.comment == "Changed my reasoning"
    assert _budget(db_session, member) == 9


def test_cascade_is_idempotent(db_session, voting, member, membership_request, applicant) -> None:
    voting.cast_membership_vote(member, membership_request.id, VoteChoice.APPROVE)

    apply_membership_cascade(db_session, membership_request)
    apply_membership_cascade(db_session, membership_request)
    db_session.commit()

    db_session.refresh(applicant)
    assert applicant.membership_state == MembershipState.APPROVED


def test_cascade_ignores_pending_request(db_session, membership_request, applicant) -> None:
    apply_membership_cascade(db_session, membership_request)
    db_session.refresh(applicant)
    assert applicant.membership_state == MembershipState.PENDING_APPROVAL


def test_empty_budget_refuses_new_vote(db_session, voting, make_user, membership_request) -> None:
    voter = make_user(vote_budget=0)

    with pytest.raises(CapacityExhaustedError):
        voting.cast_membership_vote(voter, membership_request.id, VoteChoice.APPROVE)
    db_session.rollback()

    db_session.refresh(membership_request)
    assert membership_request.approval_count == 0
    assert membership_request.state == MembershipRequestState.PENDING
    assert db_session.query(MembershipVote).count() == 0


@pytest.mark.usefixtures("high_requirement")
def test_edit_allowed_with_empty_budget(db_session, voting, make_user, membership_request) -> None:
    """Changing an existing vote does not need budget."""
    voter = make_user(vote_budget=1)
    voting.cast_membership_vote(voter, membership_request.id, VoteChoice.APPROVE)
    assert _budget(db_session, voter) == 0

    outcome = voting.cast_membership_vote(voter, membership_request.id, VoteChoice.REJECT, REJECT_REASON)
    assert (outcome.approvals, outcome.rejections) == (0, 1)


def test_daily_approval_cap(db_session, voting, member, make_request) -> None:
    requests = [make_request() for _ in range(4)]
    for request in requests[:3]:
        voting.cast_membership_vote(member, request.id, VoteChoice.APPROVE)
    db_session.commit()

    with pytest.raises(RateLimitedError):
        voting.cast_membership_vote(member, requests[3].id, VoteChoice.APPROVE)
    db_session.rollback()

    # the refused vote spent nothing
    assert _budget(db_session, member) == 7
    assert db_session.query(MembershipVote).filter_by(request_id=requests[3].id).count() == 0

    # rejections are not capped
    outcome = voting.cast_membership_vote(member, requests[3].id, VoteChoice.REJECT, REJECT_REASON)
    assert outcome.state == MembershipRequestState.REJECTED


def test_daily_approval_cap_resets_at_utc_midnight(db_session, voting, member, make_request, clock) -> None:
    requests = [make_request() for _ in range(4)]
    for request in requests[:3]:
        voting.cast_membership_vote(member, request.id, VoteChoice.APPROVE)
    db_session.commit()

    clock.advance(hours=12)
    outcome = voting.cast_membership_vote(member, requests[3].id, VoteChoice.APPROVE)
    assert outcome.state == MembershipRequestState.APPROVED


def test_count_approvals_today_ignores_other_days_and_rejections(db_session, voting, member, make_request, clock) -> None:
    first, second, third = (make_request() for _ in range(3))
    voting.cast_membership_vote(member, first.id, VoteChoice.APPROVE)
    voting.cast_membership_vote(member, second.id, VoteChoice.REJECT, REJECT_REASON)
    assert voting.count_approvals_today(member.id) == 1

    clock.advance(days=1)
    voting.cast_membership_vote(member, third.id, VoteChoice.APPROVE)
    assert voting.count_approvals_today(member.id) == 1


def test_discuss_rejected_on_membership_request(voting, member, membership_request) -> None:
    with pytest.raises(VoteValidationError):
        voting.cast_membership_vote(member, membership_request.id, VoteChoice.DISCUSS, "Let us talk first")


@pytest.mark.parametrize("comment", [None, "", "   ", "no"])
def test_reject_requires_comment(voting, member, membership_request, comment) -> None:
    with pytest.raises(VoteValidationError):
        voting.cast_membership_vote(member, membership_request.id, VoteChoice.REJECT, comment)


def test_vote_on_missing_request(voting, member) -> None:
    with pytest.raises(TargetNotFoundError):
        voting.cast_membership_vote(member, 424242, VoteChoice.APPROVE)


def test_vote_on_resolved_request(db_session, voting, member, other_member, membership_request) -> None:
    voting.cast_membership_vote(member, membership_request.id, VoteChoice.APPROVE)
    db_session.commit()

    with pytest.raises(TargetFinalizedError):
        voting.cast_membership_vote(other_member, membership_request.id, VoteChoice.REJECT, REJECT_REASON)
    db_session.rollback()
    assert _budget(db_session, other_member) == 10


def test_vote_refused_once_applicant_left_pending(db_session, voting, member, membership_request, applicant) -> None:
    """A banned applicant cannot be voted back in through their open request."""
    applicant.membership_state = MembershipState.BANNED
    db_session.commit()

    with pytest.raises(TargetFinalizedError):
        voting.cast_membership_vote(member, membership_request.id, VoteChoice.APPROVE)
    db_session.rollback()

    db_session.refresh(applicant)
    db_session.refresh(membership_request)
    assert applicant.membership_state == MembershipState.BANNED
    assert membership_request.state == MembershipRequestState.PENDING
    assert membership_request.approval_count == 0
    assert _budget(db_session, member) == 10


@pytest.mark.usefixtures("high_requirement")
def test_concurrent_first_vote_is_retried_as_update(db_session, voting, member, membership_request) -> None:
    voting.cast_membership_vote(member, membership_request.id, VoteChoice.APPROVE)

    vote, previous, inserted = voting._upsert_vote(
        MembershipVote,
        "request_id",
        membership_request.id,
        member.id,
        VoteChoice.REJECT,
        REJECT_REASON,
        None,
        voting._clock(),
    )

    assert inserted is False
    assert previous == VoteChoice.APPROVE
    assert vote.choice == VoteChoice.REJECT
    assert db_session.query(MembershipVote).count() == 1


@pytest.mark.usefixtures("high_requirement")
def test_lost_insert_race_refunds_budget(db_session, voting, member, membership_request, monkeypatch) -> None:
    """A vote that looked new but collided with an existing row costs nothing extra."""
    voting.cast_membership_vote(member, membership_request.id, VoteChoice.APPROVE)
    db_session.commit()

    original = VotingService._find_vote
    calls = []

    def stale_first_lookup(self, *args):
        calls.append(args)
        if len(calls) == 1:
            return None
        return original(self, *args)

    monkeypatch.setattr(VotingService, "_find_vote", stale_first_lookup)
    outcome = voting.cast_membership_vote(member, membership_request.id, VoteChoice.APPROVE)
    db_session.commit()

    assert outcome.previous_choice == VoteChoice.APPROVE
    assert outcome.approvals == 1
    assert _budget(db_session, member) == 9
    assert db_session.query(MembershipVote).count() == 1


def test_petition_vote_switch_nets_out(db_session, voting, other_member, petition) -> None:
    voting.cast_petition_vote(other_member, petition.id, VoteChoice.APPROVE)
    outcome = voting.cast_petition_vote(other_member, petition.id, VoteChoice.REJECT, REJECT_REASON)
    db_session.commit()

    assert outcome.previous_choice == VoteChoice.APPROVE
    assert (petition.approval_count, petition.rejection_count) == (0, 1)
    assert petition.state == PetitionState.IN_REVIEW


def test_petition_votes_do_not_spend_budget(db_session, voting, other_member, petition) -> None:
    voting.cast_petition_vote(other_member, petition.id, VoteChoice.APPROVE)
    assert _budget(db_session, other_member) == 10


def test_petition_discuss_is_stored_but_not_counted(db_session, voting, other_member, petition) -> None:
    outcome = voting.cast_petition_vote(other_member, petition.id, VoteChoice.DISCUSS, "Which weekdays exactly?")
    db_session.commit()

    assert (outcome.approvals, outcome.rejections) == (0, 0)
    stored = db_session.query(PetitionVote).one()
    assert stored.choice == VoteChoice.DISCUSS
    assert stored.comment == "Which weekdays exactly?"


def test_self_vote_forbidden(voting, member, petition) -> None:
    with pytest.raises(SelfVoteForbiddenError):
        voting.cast_petition_vote(member, petition.id, VoteChoice.APPROVE)


def test_petition_approved_at_quorum(db_session, voting, make_user, petition, clock) -> None:
    voters = [make_user() for _ in range(3)]
    outcomes = [voting.cast_petition_vote(voter, petition.id, VoteChoice.APPROVE) for voter in voters]
    db_session.commit()

    assert [o.resolved for o in outcomes] == [False, False, True]
    assert petition.state == PetitionState.APPROVED
    assert as_utc(petition.resolved_at) == clock()


def test_petition_not_approved_below_percentage(db_session, voting, make_user, petition) -> None:
    approve, reject_a, reject_b = (make_user() for _ in range(3))
    voting.cast_petition_vote(approve, petition.id, VoteChoice.APPROVE)
    voting.cast_petition_vote(reject_a, petition.id, VoteChoice.REJECT, REJECT_REASON)
    outcome = voting.cast_petition_vote(reject_b, petition.id, VoteChoice.REJECT, REJECT_REASON)

    assert outcome.state == PetitionState.NOT_APPROVED


def test_vote_on_closed_petition(db_session, voting, other_member, petition) -> None:
    petition.state = PetitionState.CLOSED
    db_session.commit()

    with pytest.raises(TargetFinalizedError):
        voting.cast_petition_vote(other_member, petition.id, VoteChoice.APPROVE)
