"""Administration endpoints for the Consejo API."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from consejo.api.v1.dependencies import AdminDep, ClockDep, SessionDep, http_error
from consejo.models import (
    MembershipRequest,
    MembershipRequestState,
    MembershipState,
    MembershipVote,
    Petition,
    PetitionState,
    PetitionVote,
    Report,
    ReportState,
    User,
    UserRole,
)
from consejo.schemas.petition import PetitionResponse, PetitionVisibilityUpdate
from consejo.schemas.policy import PolicyConfigResponse, PolicyConfigUpdate
from consejo.schemas.report import ReportResponse, ReportUpdate
from consejo.schemas.user import (
    AdminUserCreate,
    AdminUserResponse,
    MembershipStateUpdate,
    UserResponse,
)
from consejo.services.errors import VotingError
from consejo.services.membership import delete_request
from consejo.services.petition_service import (
    close_petition,
    delete_petition,
    list_petitions,
    set_petition_hidden,
)
from consejo.services.policy import get_policy, update_policy
from consejo.services.report_service import delete_report, list_reports, update_report
from consejo.services.user_service import create_user, get_user, search_users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


def _counts_by(db: Session, column: Any, enum_cls: type[StrEnum]) -> dict[str, int]:
    """Count rows per enum value, reporting zero for values with no rows."""
    counts = {member.value: 0 for member in enum_cls}
    for value, count in db.query(column, func.count()).group_by(column).all():
        counts[enum_cls(value).value] = int(count or 0)
    return counts


@router.get("/config", response_model=PolicyConfigResponse)
async def get_config(current_user: AdminDep, db: SessionDep) -> PolicyConfigResponse:
    """Return the current voting policy."""
    policy = get_policy(db)
    db.commit()
    return PolicyConfigResponse.model_validate(policy)


@router.put("/config", response_model=PolicyConfigResponse)
async def put_config(
    changes: PolicyConfigUpdate,
    current_user: AdminDep,
    db: SessionDep,
) -> PolicyConfigResponse:
    """Update part of the voting policy."""
    policy = update_policy(db, changes.model_dump(exclude_unset=True, exclude_none=True))
    db.commit()
    logger.info("Administrator %s updated the voting policy", current_user.id)
    return PolicyConfigResponse.model_validate(policy)


@router.get("/dashboard")
async def get_dashboard(current_user: AdminDep, db: SessionDep) -> dict[str, object]:
    """Aggregate counters for the administration dashboard.

    Returns:
        Dictionary with user, petition and membership request statistics
    """
    total_likes = db.query(func.coalesce(func.sum(Petition.likes), 0)).scalar()
    return {
        "users": {
            "total": db.query(User).count(),
            "by_membership_state": _counts_by(db, User.membership_state, MembershipState),
            "by_role": _counts_by(db, User.role, UserRole),
        },
        "petitions": {
            "total": db.query(Petition).count(),
            "by_state": _counts_by(db, Petition.state, PetitionState),
            "hidden": db.query(Petition).filter(Petition.hidden.is_(True)).count(),
            "likes": int(total_likes or 0),
            "votes": db.query(PetitionVote).count(),
        },
        "membership_requests": {
            "total": db.query(MembershipRequest).count(),
            "by_state": _counts_by(db, MembershipRequest.state, MembershipRequestState),
            "votes": db.query(MembershipVote).count(),
        },
        "reports": {
            "total": db.query(Report).count(),
            "by_state": _counts_by(db, Report.state, ReportState),
        },
    }


@router.post("/petitions/{petition_id}/close", response_model=PetitionResponse)
async def moderate_close_petition(
    petition_id: int,
    current_user: AdminDep,
    db: SessionDep,
    clock: ClockDep,
) -> Petition:
    """Close a petition regardless of its votes."""
    try:
        petition = close_petition(db, petition_id, clock())
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(petition)
    return petition


@router.put("/petitions/{petition_id}/visibility", response_model=PetitionResponse)
async def set_visibility(
    petition_id: int,
    visibility: PetitionVisibilityUpdate,
    current_user: AdminDep,
    db: SessionDep,
) -> Petition:
    """Hide a petition from listings or show it again."""
    try:
        petition = set_petition_hidden(db, petition_id, visibility.hidden)
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(petition)
    return petition


@router.put("/users/{user_id}/membership", response_model=UserResponse)
async def set_membership(
    user_id: int,
    state_update: MembershipStateUpdate,
    current_user: AdminDep,
    db: SessionDep,
) -> User:
    """Override a user's membership state."""
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    previous = user.membership_state
    user.membership_state = state_update.membership_state
    db.commit()
    db.refresh(user)
    logger.info(
        "Administrator %s set user %s membership from %s to %s",
        current_user.id,
        user_id,
        previous.value,
        user.membership_state.value,
    )
    return user


@router.get("/users", response_model=list[AdminUserResponse])
async def list_users(
    current_user: AdminDep,
    db: SessionDep,
    search: str | None = Query(None, max_length=200, description="Match e-mail or display name"),
) -> list[User]:
    """List users newest first."""
    return list(search_users(db, search))


@router.get("/users/{user_id}", response_model=AdminUserResponse)
async def get_single_user(user_id: int, current_user: AdminDep, db: SessionDep) -> User:
    try:
        return get_user(db, user_id)
    except VotingError as err:
        raise HTTPException(status_code=err.status_code, detail=err.detail) from err


@router.post("/users", response_model=AdminUserResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    user_data: AdminUserCreate,
    current_user: AdminDep,
    db: SessionDep,
    clock: ClockDep,
) -> User:
    """Create an account directly, bypassing the membership vote."""
    try:
        user = create_user(
            db,
            email=user_data.email,
            display_name=user_data.display_name,
            now=clock(),
            role=user_data.role,
            membership_state=user_data.membership_state,
        )
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(user)
    logger.info("Administrator %s created user %s", current_user.id, user.id)
    return user


@router.get("/petitions", response_model=list[PetitionResponse])
async def list_all_petitions(
    current_user: AdminDep,
    db: SessionDep,
    state: PetitionState | None = Query(None),
    include_hidden: bool = Query(True),
) -> list[Petition]:
    """List petitions newest first, hidden ones included by default."""
    return list_petitions(db, state, include_hidden=include_hidden)


@router.delete("/petitions/{petition_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_petition(petition_id: int, current_user: AdminDep, db: SessionDep) -> None:
    """Delete a petition with its votes, likes and reports."""
    try:
        delete_petition(db, petition_id)
    except VotingError as err:
        raise http_error(db, err) from err
    db.commit()


@router.delete("/membership-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_membership_request(request_id: int, current_user: AdminDep, db: SessionDep) -> None:
    """Delete a membership request and its votes."""
    try:
        delete_request(db, request_id)
    except VotingError as err:
        raise http_error(db, err) from err
    db.commit()


@router.get("/reports", response_model=list[ReportResponse])
async def get_reports(
    current_user: AdminDep,
    db: SessionDep,
    state: ReportState | None = Query(None),
) -> list[Report]:
    return list_reports(db, state)


@router.put("/reports/{report_id}", response_model=ReportResponse)
async def put_report(
    report_id: int,
    changes: ReportUpdate,
    current_user: AdminDep,
    db: SessionDep,
) -> Report:
    """Change a report's state or description."""
    try:
        report = update_report(db, report_id, changes.model_dump(exclude_unset=True, exclude_none=True))
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(report)
    return report


@router.delete("/reports/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_report(report_id: int, current_user: AdminDep, db: SessionDep) -> None:
    try:
        delete_report(db, report_id)
    except VotingError as err:
        raise http_error(db, err) from err
    db.commit()
