# src/consejo/models/policy.py
"""Singleton policy row governing thresholds and vote budgets."""

from sqlalchemy import CheckConstraint, Integer
from sqlalchemy.orm import Mapped, mapped_column

from consejo.db.session import Base

POLICY_CONFIG_ID = 1


class PolicyConfig(Base):
    """Admin-editable voting policy. Exactly one row, id = 1."""

    __tablename__ = "policy_config"
    __table_args__ = (
        CheckConstraint("min_votes_petition >= 0", name="ck_policy_min_votes_petition"),
        CheckConstraint(
            "min_votes_membership_request >= 0",
            name="ck_policy_min_votes_membership_request",
        ),
        CheckConstraint(
            "approval_percentage BETWEEN 0 AND 100",
            name="ck_policy_approval_percentage",
        ),
        CheckConstraint("max_vote_budget >= 0", name="ck_policy_max_vote_budget"),
        CheckConstraint("regen_interval_minutes >= 0", name="ck_policy_regen_interval"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=POLICY_CONFIG_ID)
    min_votes_petition: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    # Static threshold from the pre-population model; kept for admin tooling only.
    min_votes_membership_request: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    approval_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
    max_vote_budget: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    regen_interval_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
