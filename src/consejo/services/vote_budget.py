# src/consejo/services/vote_budget.py
"""Per-user vote budget that refills lazily over time.

There is no background timer: every read or spend first credits the whole
regeneration intervals elapsed since the user's anchor timestamp. The anchor
moves forward by exactly the intervals credited, so the partial interval in
progress carries over to the next calculation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from consejo.db.time import as_utc, utcnow
from consejo.models import PolicyConfig, User
from consejo.services.policy import get_policy

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

__all__ = ["BudgetStatus", "Clock", "VoteBudgetService", "regenerated_budget"]


@dataclass(frozen=True)
class BudgetStatus:
    """Snapshot returned to clients polling their vote budget."""

    vote_budget: int
    seconds_until_next: int
    max_vote_budget: int
    regen_interval_minutes: int


def regenerated_budget(
    vote_budget: int,
    last_regen_at: datetime,
    config: PolicyConfig,
    now: datetime,
) -> tuple[int, datetime]:
    """Return ``(budget, anchor)`` after crediting whole elapsed intervals.

    Unchanged inputs come back when less than one interval has elapsed, when
    the clock reads earlier than the anchor, or when the interval is not positive.
    """
    if config.regen_interval_minutes <= 0:
        return vote_budget, last_regen_at

    interval = timedelta(minutes=config.regen_interval_minutes)
    units = (as_utc(now) - as_utc(last_regen_at)) // interval
    if units <= 0:
        return vote_budget, last_regen_at

    new_budget = min(vote_budget + units, config.max_vote_budget)
    new_anchor = as_utc(last_regen_at) + units * interval
    return new_budget, new_anchor


class VoteBudgetService:
    """Regenerate, spend and report a user's vote budget.

    All writes go through a row lock on the user, so two requests from the
    same user cannot spend the same unit. Changes are flushed, not committed:
    the caller owns the transaction.
    """

    def __init__(self, db: Session, clock: Clock = utcnow) -> None:
        self._db = db
        self._clock = clock

    def _lock_user(self, user_id: int) -> User | None:
        return (
            self._db.query(User)
            .filter(User.id == user_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )

    def regenerate(self, user: User, config: PolicyConfig, now: datetime) -> User:
        """Credit elapsed intervals to ``user`` and persist the new budget and anchor."""
        new_budget, new_anchor = regenerated_budget(
            user.vote_budget,
            user.last_budget_regen_at,
            config,
            now,
        )
        if new_anchor == user.last_budget_regen_at and new_budget == user.vote_budget:
            return user

        logger.debug(
            "Regenerated vote budget for user %s: %s -> %s",
            user.id,
            user.vote_budget,
            new_budget,
        )
        user.vote_budget = new_budget
        user.last_budget_regen_at = new_anchor
        self._db.flush()
        return user

    def try_consume(self, user_id: int, config: PolicyConfig | None = None) -> bool:
        """Spend one vote if any is available.

        Returns:
            True if a unit was consumed, False if the budget is empty or the
            user does not exist. A False result performs no decrement.
        """
        config = config or get_policy(self._db)
        user = self._lock_user(user_id)
        if user is None:
            return False

        self.regenerate(user, config, self._clock())
        if user.vote_budget <= 0:
            logger.warning("User %s has no vote budget left", user_id)
            return False

        # Conditional decrement: never goes below zero even without row locks.
        result = self._db.execute(
            update(User)
            .where(User.id == user_id, User.vote_budget > 0)
            .values(vote_budget=User.vote_budget - 1)
        )
        if result.rowcount != 1:
            return False

        self._db.refresh(user)
        logger.debug("User %s spent a vote; %s left", user_id, user.vote_budget)
        return True

    def refund(self, user_id: int) -> None:
        """Give back a unit spent on a vote that turned out to be an edit."""
        self._db.execute(
            update(User)
            .where(User.id == user_id)
            .values(vote_budget=User.vote_budget + 1)
        )
        logger.debug("Refunded one vote to user %s", user_id)

    def get_status(self, user_id: int, config: PolicyConfig | None = None) -> BudgetStatus:
        """Regenerate, then report the budget and the wait until the next unit."""
        config = config or get_policy(self._db)
        user = self._lock_user(user_id)
        if user is None:
            return BudgetStatus(
                vote_budget=0,
                seconds_until_next=0,
                max_vote_budget=config.max_vote_budget,
                regen_interval_minutes=config.regen_interval_minutes,
            )

        now = self._clock()
        self.regenerate(user, config, now)

        seconds_until_next = 0
        if user.vote_budget < config.max_vote_budget and config.regen_interval_minutes > 0:
            interval = timedelta(minutes=config.regen_interval_minutes)
            elapsed = as_utc(now) - as_utc(user.last_budget_regen_at)
            remaining = max(interval - (elapsed % interval), timedelta(0))
            seconds_until_next = math.ceil(remaining.total_seconds())

        return BudgetStatus(
            vote_budget=user.vote_budget,
            seconds_until_next=seconds_until_next,
            max_vote_budget=config.max_vote_budget,
            regen_interval_minutes=config.regen_interval_minutes,
        )
