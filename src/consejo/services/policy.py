# src/consejo/services/policy.py
"""Loading and editing the singleton voting policy."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from consejo.core.settings import settings
from consejo.models import POLICY_CONFIG_ID, PolicyConfig

logger = logging.getLogger(__name__)

__all__ = ["create_default_policy", "get_policy", "update_policy"]


def create_default_policy(db: Session) -> PolicyConfig:
    """Insert the policy row seeded from settings.

    A concurrent creator may win the race; in that case its row is returned.
    """
    policy = PolicyConfig(
        id=POLICY_CONFIG_ID,
        min_votes_petition=settings.policy_min_votes_petition,
        min_votes_membership_request=settings.policy_min_votes_membership_request,
        approval_percentage=settings.policy_approval_percentage,
        max_vote_budget=settings.policy_max_vote_budget,
        regen_interval_minutes=settings.policy_regen_interval_minutes,
    )
    try:
        with db.begin_nested():
            db.add(policy)
    except IntegrityError:
        logger.warning("Policy row created concurrently; using the existing one")
        return db.get(PolicyConfig, POLICY_CONFIG_ID)  # type: ignore[return-value]
    logger.info("Created default voting policy")
    return policy


def get_policy(db: Session) -> PolicyConfig:
    """Return the policy row, creating it with defaults if absent."""
    policy = db.get(PolicyConfig, POLICY_CONFIG_ID)
    if policy is None:
        policy = create_default_policy(db)
    return policy


def update_policy(db: Session, changes: Mapping[str, Any]) -> PolicyConfig:
    """Apply a partial update coming from an administrator.

    Args:
        db: Database session
        changes: Field name to new value; only provided fields are touched

    Returns:
        The updated policy row (flushed, not committed)
    """
    policy = get_policy(db)
    for key, value in changes.items():
        setattr(policy, key, value)
    db.flush()
    logger.info("Voting policy updated: %s", dict(changes))
    return policy
