"""Registration endpoint for the Consejo API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, status

from consejo.api.v1.dependencies import ClockDep, SessionDep, http_error
from consejo.core.security import create_access_token
from consejo.schemas.user import RegistrationResponse, UserRegister, UserResponse
from consejo.services.errors import VotingError
from consejo.services.user_service import register_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: UserRegister,
    db: SessionDep,
    clock: ClockDep,
) -> RegistrationResponse:
    """Create an applicant account and return a bearer token for it.

    The account starts in ``pending_approval``; the holder can then file a
    membership request for members to vote on.
    """
    try:
        user = register_user(
            db,
            email=registration.email,
            display_name=registration.display_name,
            now=clock(),
        )
    except VotingError as err:
        raise http_error(db, err) from err

    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return RegistrationResponse(
        access_token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )
