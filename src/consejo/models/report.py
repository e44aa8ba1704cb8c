# src/consejo/models/report.py
"""Member reports flagging petitions for moderator attention."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from consejo.db.session import Base
from consejo.db.time import utcnow
from consejo.db.types import UTCDateTime, enum_column


class ReportState(StrEnum):
    """Moderation status of a report."""

    OPEN = "open"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


class Report(Base):
    """A member's complaint about a petition."""

    __tablename__ = "report"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    petition_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("petition.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    state: Mapped[ReportState] = mapped_column(
        enum_column(ReportState),
        nullable=False,
        default=ReportState.OPEN,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
