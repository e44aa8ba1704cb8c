"""Service-level helpers for creating, listing and moderating petitions."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from consejo.models import Petition, PetitionLike, PetitionState, PetitionVote, Report, User
from consejo.services.errors import DuplicateLikeError, TargetFinalizedError, TargetNotFoundError

logger = logging.getLogger(__name__)

POPULAR_LIMIT = 20

__all__ = [
    "close_petition",
    "create_petition",
    "delete_petition",
    "get_petition",
    "like_petition",
    "list_petitions",
    "popular_petitions",
    "set_petition_hidden",
]


def get_petition(db: Session, petition_id: int, *, include_hidden: bool = False) -> Petition:
    """Return a petition or raise :class:`TargetNotFoundError`."""
    petition = db.get(Petition, petition_id)
    if petition is None or (petition.hidden and not include_hidden):
        raise TargetNotFoundError(f"Petition {petition_id} not found")
    return petition


def create_petition(
    db: Session,
    *,
    author: User,
    title: str,
    description: str,
    image_urls: Sequence[str],
    video_url: str | None,
    now: datetime,
) -> Petition:
    """Persist a new petition in review.

    Membership checks happen upstream; this function assumes the author is an
    approved member.
    """
    petition = Petition(
        author_user_id=author.id,
        title=title,
        description=description,
        image_urls=list(image_urls),
        video_url=video_url,
        state=PetitionState.IN_REVIEW,
        created_at=now,
    )
    db.add(petition)
    db.flush()
    logger.info("User %s created petition %s", author.id, petition.id)
    return petition


def list_petitions(
    db: Session,
    state: PetitionState | None = None,
    *,
    include_hidden: bool = False,
) -> list[Petition]:
    """Return petitions newest first, optionally filtered by state."""
    query = db.query(Petition)
    if state is not None:
        query = query.filter(Petition.state == state)
    if not include_hidden:
        query = query.filter(Petition.hidden.is_(False))
    return query.order_by(Petition.created_at.desc(), Petition.id.desc()).all()


def popular_petitions(db: Session, limit: int = POPULAR_LIMIT) -> list[Petition]:
    """Return the most liked visible petitions, ties broken by recency."""
    return (
        db.query(Petition)
        .filter(Petition.hidden.is_(False))
        .order_by(Petition.likes.desc(), Petition.created_at.desc(), Petition.id.desc())
        .limit(limit)
        .all()
    )


def like_petition(db: Session, petition_id: int, user: User) -> Petition:
    """Record a like and bump the counter atomically.

    Raises:
        TargetNotFoundError: No such visible petition.
        DuplicateLikeError: The user already liked it.
    """
    petition = get_petition(db, petition_id)
    if db.get(PetitionLike, (petition_id, user.id)) is not None:
        raise DuplicateLikeError("You already liked this petition")
    try:
        with db.begin_nested():
            db.add(PetitionLike(petition_id=petition_id, user_id=user.id))
    except IntegrityError as err:
        raise DuplicateLikeError("You already liked this petition") from err

    db.execute(
        update(Petition)
        .where(Petition.id == petition_id)
        .values(likes=Petition.likes + 1)
        .execution_options(synchronize_session=False)
    )
    db.refresh(petition, attribute_names=["likes"])
    return petition


def close_petition(db: Session, petition_id: int, now: datetime) -> Petition:
    """Moderator action moving any petition to ``closed``.

    Raises:
        TargetNotFoundError: No such petition.
        TargetFinalizedError: It is already closed.
    """
    petition = get_petition(db, petition_id, include_hidden=True)
    if petition.state == PetitionState.CLOSED:
        raise TargetFinalizedError(f"Petition {petition_id} is already closed")

    previous = petition.state
    petition.state = PetitionState.CLOSED
    if petition.resolved_at is None:
        petition.resolved_at = now
    db.flush()
    logger.info("Petition %s closed by moderation (was %s)", petition_id, previous.value)
    return petition


def set_petition_hidden(db: Session, petition_id: int, hidden: bool) -> Petition:
    """Hide a petition from public listings, or show it again."""
    petition = get_petition(db, petition_id, include_hidden=True)
    petition.hidden = hidden
    db.flush()
    logger.info("Petition %s visibility set to %s", petition_id, "hidden" if hidden else "visible")
    return petition


def delete_petition(db: Session, petition_id: int) -> None:
    """Remove a petition together with its votes, likes and reports."""
    petition = get_petition(db, petition_id, include_hidden=True)
    for model in (PetitionVote, PetitionLike, Report):
        db.execute(
            delete(model)
            .where(model.petition_id == petition_id)
            .execution_options(synchronize_session=False)
        )
    db.delete(petition)
    db.flush()
    logger.info("Petition %s deleted by moderation", petition_id)
