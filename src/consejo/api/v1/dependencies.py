"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from consejo.core.security import JWTError, decode_access_token
from consejo.db.session import get_db
from consejo.db.time import utcnow
from consejo.models import User
from consejo.services.errors import VotingError
from consejo.services.vote_budget import Clock

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_clock() -> Clock:
    """Return the clock used to timestamp votes and regenerate budgets."""
    return utcnow


ClockDep = Annotated[Clock, Depends(get_clock)]


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as err:
        raise _credentials_error() from err

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as err:
        raise _credentials_error() from err

    user = db.get(User, user_id)
    if user is None:
        raise _credentials_error("User not found")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_member(current_user: CurrentUserDep) -> User:
    """Allow only approved members through."""
    if not current_user.is_approved_member:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only approved members can do this",
        )
    return current_user


def require_admin(current_user: CurrentUserDep) -> User:
    """Allow only administrators through."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return current_user


MemberDep = Annotated[User, Depends(require_member)]
AdminDep = Annotated[User, Depends(require_admin)]


def http_error(db: Session, err: VotingError) -> HTTPException:
    """Roll back the request's work and map a domain error to its HTTP status."""
    db.rollback()
    return HTTPException(status_code=err.status_code, detail=err.detail)
