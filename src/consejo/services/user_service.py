"""Helpers for registering, creating and looking up users."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from consejo.models import MembershipState, User, UserRole
from consejo.services.errors import TargetNotFoundError, UserExistsError
from consejo.services.policy import get_policy

logger = logging.getLogger(__name__)

__all__ = [
    "create_user",
    "get_user",
    "register_user",
    "search_users",
]


def get_user(db: Session, user_id: int) -> User:
    """Return a user by primary key or raise :class:`TargetNotFoundError`."""
    user = db.get(User, user_id)
    if user is None:
        raise TargetNotFoundError(f"User {user_id} not found")
    return user


def search_users(db: Session, search: str | None = None) -> Sequence[User]:
    """Return users newest first, optionally matching e-mail or display name."""
    query = db.query(User)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(User.email.ilike(pattern), User.display_name.ilike(pattern)))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def create_user(
    db: Session,
    *,
    email: str,
    display_name: str,
    now: datetime,
    role: UserRole = UserRole.MEMBER,
    membership_state: MembershipState = MembershipState.PENDING_APPROVAL,
) -> User:
    """Persist a new user with a full vote budget.

    Raises:
        UserExistsError: The e-mail is already registered.
    """
    if db.query(User).filter(User.email == email).one_or_none() is not None:
        raise UserExistsError("An account with this e-mail already exists")

    user = User(
        email=email,
        display_name=display_name,
        role=role,
        membership_state=membership_state,
        vote_budget=get_policy(db).max_vote_budget,
        last_budget_regen_at=now,
        created_at=now,
    )
    try:
        with db.begin_nested():
            db.add(user)
    except IntegrityError as err:
        raise UserExistsError("An account with this e-mail already exists") from err

    logger.info("Created user %s (%s, %s)", user.id, role.value, membership_state.value)
    return user


def register_user(db: Session, *, email: str, display_name: str, now: datetime) -> User:
    """Sign up a new applicant awaiting community approval."""
    return create_user(db, email=email, display_name=display_name, now=now)
