# src/consejo/models/vote.py
"""Models capturing votes on membership requests and petitions."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from consejo.db.session import Base
from consejo.db.time import utcnow
from consejo.db.types import UTCDateTime, enum_column


class VoteChoice(StrEnum):
    """What a voter said. ``discuss`` is petition-only and never counted."""

    APPROVE = "approve"
    REJECT = "reject"
    DISCUSS = "discuss"


class MembershipVote(Base):
    """Per-member vote on a membership request."""

    __tablename__ = "membership_vote"
    __table_args__ = (
        # At most one vote per (request, voter); repeat votes update this row.
        UniqueConstraint("request_id", "voter_user_id", name="uq_membership_vote_voter"),
        Index("ix_membership_vote_voter_created", "voter_user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    request_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("membership_request.id", ondelete="CASCADE"),
        nullable=False,
    )
    voter_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    choice: Mapped[VoteChoice] = mapped_column(enum_column(VoteChoice), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    @property
    def target_id(self) -> int:
        return self.request_id


class PetitionVote(Base):
    """Per-member vote on a petition."""

    __tablename__ = "petition_vote"
    __table_args__ = (
        UniqueConstraint("petition_id", "voter_user_id", name="uq_petition_vote_voter"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    petition_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("petition.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    voter_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    choice: Mapped[VoteChoice] = mapped_column(enum_column(VoteChoice), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    @property
    def target_id(self) -> int:
        return self.petition_id
