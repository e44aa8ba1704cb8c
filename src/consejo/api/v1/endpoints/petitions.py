"""Petition endpoints for the Consejo API."""

from fastapi import APIRouter, HTTPException, Query, status

from consejo.api.v1.dependencies import ClockDep, MemberDep, SessionDep, http_error
from consejo.models import Petition, PetitionState, PetitionVote, Report
from consejo.schemas.petition import PetitionCreate, PetitionResponse
from consejo.schemas.report import ReportCreate, ReportResponse
from consejo.schemas.vote import MyVoteResponse, PetitionVoteCreate, VoteResponse, to_vote_response
from consejo.services.errors import VotingError
from consejo.services.petition_service import (
    create_petition,
    get_petition,
    like_petition,
    list_petitions,
    popular_petitions,
)
from consejo.services.report_service import create_report
from consejo.services.voting import VotingService

router = APIRouter(prefix="/petitions", tags=["petitions"])


@router.post("/", response_model=PetitionResponse, status_code=status.HTTP_201_CREATED)
async def create_new_petition(
    petition_data: PetitionCreate,
    current_user: MemberDep,
    db: SessionDep,
    clock: ClockDep,
) -> Petition:
    """Open a new petition for review."""
    petition = create_petition(
        db,
        author=current_user,
        title=petition_data.title,
        description=petition_data.description,
        image_urls=[str(url) for url in petition_data.image_urls],
        video_url=str(petition_data.video_url) if petition_data.video_url else None,
        now=clock(),
    )
    db.commit()
    db.refresh(petition)
    return petition


@router.get("/", response_model=list[PetitionResponse])
async def get_petitions(
    db: SessionDep,
    state: PetitionState | None = Query(None),
) -> list[Petition]:
    """List visible petitions, newest first."""
    return list_petitions(db, state)


@router.get("/popular", response_model=list[PetitionResponse])
async def get_popular_petitions(db: SessionDep) -> list[Petition]:
    """List the most liked petitions."""
    return popular_petitions(db)


@router.get("/{petition_id}", response_model=PetitionResponse)
async def get_single_petition(petition_id: int, db: SessionDep) -> Petition:
    """Get a petition by id."""
    try:
        return get_petition(db, petition_id)
    except VotingError as err:
        raise HTTPException(status_code=err.status_code, detail=err.detail) from err


@router.post("/{petition_id}/votes", response_model=VoteResponse)
async def vote_on_petition(
    petition_id: int,
    vote_data: PetitionVoteCreate,
    current_user: MemberDep,
    db: SessionDep,
    clock: ClockDep,
) -> VoteResponse:
    """Approve, reject or ask to discuss a petition."""
    voting = VotingService(db, clock)
    try:
        outcome = voting.cast_petition_vote(
            current_user, petition_id, vote_data.choice, vote_data.comment
        )
    except VotingError as err:
        raise http_error(db, err) from err

    response = to_vote_response(outcome)
    db.commit()
    return response


@router.get("/{petition_id}/my-vote", response_model=MyVoteResponse)
async def get_my_petition_vote(
    petition_id: int,
    current_user: MemberDep,
    db: SessionDep,
) -> MyVoteResponse:
    """Get the caller's vote on a petition."""
    vote = (
        db.query(PetitionVote)
        .filter(
            PetitionVote.petition_id == petition_id,
            PetitionVote.voter_user_id == current_user.id,
        )
        .first()
    )
    if vote is None:
        return MyVoteResponse(choice=None)
    return MyVoteResponse(choice=vote.choice, comment=vote.comment)


@router.post("/{petition_id}/like", response_model=PetitionResponse)
async def like_single_petition(
    petition_id: int,
    current_user: MemberDep,
    db: SessionDep,
) -> Petition:
    """Like a petition once."""
    try:
        petition = like_petition(db, petition_id, current_user)
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(petition)
    return petition


@router.post(
    "/{petition_id}/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def report_petition(
    petition_id: int,
    report_data: ReportCreate,
    current_user: MemberDep,
    db: SessionDep,
    clock: ClockDep,
) -> Report:
    """Flag a petition for moderator review."""
    try:
        report = create_report(
            db,
            author=current_user,
            petition_id=petition_id,
            description=report_data.description,
            now=clock(),
        )
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(report)
    return report
