# src/consejo/models/petition.py
"""SQLAlchemy models for petitions and related attributes."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consejo.db.session import Base
from consejo.db.time import utcnow
from consejo.db.types import UTCDateTime, enum_column
from consejo.models.user import User


class PetitionState(StrEnum):
    """Petition lifecycle.

    ``closed`` is reachable only through a moderator action.
    """

    IN_REVIEW = "in_review"
    APPROVED = "approved"
    NOT_APPROVED = "not_approved"
    CLOSED = "closed"


class Petition(Base):
    """A proposal raised by an approved member and resolved by community vote."""

    __tablename__ = "petition"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    approval_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    state: Mapped[PetitionState] = mapped_column(
        enum_column(PetitionState),
        nullable=False,
        default=PetitionState.IN_REVIEW,
    )
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    author: Mapped[User] = relationship("User")


class PetitionLike(Base):
    """Join table recording that a user liked a petition."""

    __tablename__ = "petition_like"

    petition_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("petition.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
