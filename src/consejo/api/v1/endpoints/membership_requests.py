"""Membership request endpoints for the Consejo API."""

from fastapi import APIRouter, HTTPException, Query, status

from consejo.api.v1.dependencies import (
    ClockDep,
    CurrentUserDep,
    MemberDep,
    SessionDep,
    http_error,
)
from consejo.models import MembershipRequest, MembershipRequestState, MembershipVote
from consejo.schemas.membership import (
    MembershipListingResponse,
    MembershipRequestCreate,
    MembershipRequestResponse,
    to_listing_response,
    to_request_response,
)
from consejo.schemas.vote import MembershipVoteCreate, MyVoteResponse, VoteResponse, to_vote_response
from consejo.services.errors import VotingError
from consejo.services.membership import list_requests, open_request_for_applicant, submit_request
from consejo.services.voting import VotingService

router = APIRouter(prefix="/membership-requests", tags=["membership"])


@router.post("/", response_model=MembershipRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_membership_request(
    request_data: MembershipRequestCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    clock: ClockDep,
) -> MembershipRequestResponse:
    """Submit the caller's request to join."""
    try:
        request = submit_request(
            db,
            current_user,
            text=request_data.text,
            photo_url=str(request_data.photo_url) if request_data.photo_url else None,
            now=clock(),
        )
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(request)
    return to_request_response(request)


@router.get("/", response_model=list[MembershipListingResponse])
async def list_membership_requests(
    current_user: MemberDep,
    db: SessionDep,
    state: MembershipRequestState | None = Query(None),
) -> list[MembershipListingResponse]:
    """List real requests followed by applicants who have not filed one yet."""
    return [to_listing_response(entry) for entry in list_requests(db, state)]


@router.post("/{request_id}/votes", response_model=VoteResponse)
async def vote_on_membership_request(
    request_id: int,
    vote_data: MembershipVoteCreate,
    current_user: MemberDep,
    db: SessionDep,
    clock: ClockDep,
) -> VoteResponse:
    """Approve or reject a membership request."""
    voting = VotingService(db, clock)
    try:
        outcome = voting.cast_membership_vote(
            current_user, request_id, vote_data.choice, vote_data.comment
        )
    except VotingError as err:
        raise http_error(db, err) from err

    response = to_vote_response(outcome)
    db.commit()
    return response


@router.post("/applicants/{user_id}/votes", response_model=VoteResponse)
async def vote_on_applicant(
    user_id: int,
    vote_data: MembershipVoteCreate,
    current_user: MemberDep,
    db: SessionDep,
    clock: ClockDep,
) -> VoteResponse:
    """Vote on a pending applicant, creating their request row if needed."""
    voting = VotingService(db, clock)
    try:
        request = open_request_for_applicant(db, user_id, clock())
        outcome = voting.cast_membership_vote(
            current_user, request.id, vote_data.choice, vote_data.comment
        )
    except VotingError as err:
        raise http_error(db, err) from err

    response = to_vote_response(outcome)
    db.commit()
    return response


@router.get("/{request_id}/my-vote", response_model=MyVoteResponse)
async def get_my_membership_vote(
    request_id: int,
    current_user: MemberDep,
    db: SessionDep,
) -> MyVoteResponse:
    """Get the caller's vote on a membership request."""
    if db.get(MembershipRequest, request_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership request not found")

    vote = (
        db.query(MembershipVote)
        .filter(
            MembershipVote.request_id == request_id,
            MembershipVote.voter_user_id == current_user.id,
        )
        .first()
    )
    if vote is None:
        return MyVoteResponse(choice=None)
    return MyVoteResponse(choice=vote.choice, comment=vote.comment)
