# src/consejo/models/membership.py
"""Models for applicants' requests to join."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from consejo.db.session import Base
from consejo.db.time import utcnow
from consejo.db.types import UTCDateTime, enum_column
from consejo.models.user import User


class MembershipRequestState(StrEnum):
    """Lifecycle of a membership request. ``approved`` and ``rejected`` are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MembershipRequest(Base):
    """An applicant's submission, resolved by peer voting."""

    __tablename__ = "membership_request"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # One request per applicant.
    applicant_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    approval_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    state: Mapped[MembershipRequestState] = mapped_column(
        enum_column(MembershipRequestState),
        nullable=False,
        default=MembershipRequestState.PENDING,
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    applicant: Mapped[User] = relationship("User")

    @property
    def author_user_id(self) -> int:
        """The applicant authored the request."""
        return self.applicant_user_id
