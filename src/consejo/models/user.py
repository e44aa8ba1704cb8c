# src/consejo/models/user.py
"""SQLAlchemy models for platform users."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from consejo.db.session import Base
from consejo.db.time import utcnow
from consejo.db.types import UTCDateTime, enum_column


class MembershipState(StrEnum):
    """Where a user stands in the admission process."""

    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    BANNED = "banned"


class UserRole(StrEnum):
    """Coarse authorization role."""

    MEMBER = "member"
    ADMIN = "admin"


class User(Base):
    """A registered person, applicant or member.

    ``vote_budget`` and ``last_budget_regen_at`` hold the replenishing pool of
    votes a member can spend on membership requests. The anchor only ever moves
    forward in whole regeneration intervals.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("vote_budget >= 0", name="ck_users_vote_budget_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        enum_column(UserRole),
        nullable=False,
        default=UserRole.MEMBER,
    )
    membership_state: Mapped[MembershipState] = mapped_column(
        enum_column(MembershipState),
        nullable=False,
        default=MembershipState.PENDING_APPROVAL,
    )

    vote_budget: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    last_budget_regen_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    @property
    def is_approved_member(self) -> bool:
        """Return True if the user may author petitions and vote."""
        return self.membership_state == MembershipState.APPROVED

    @property
    def is_admin(self) -> bool:
        """Return True for administrators."""
        return self.role == UserRole.ADMIN
