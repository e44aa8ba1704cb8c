"""
Bootstrap a fresh database.

Creates the tables, the voting policy row and an administrator account
(``ADMIN_EMAIL``). Safe to run repeatedly.
"""

import logging

from sqlalchemy.orm import Session

from consejo.core.settings import settings
from consejo.db.session import SessionLocal, create_tables
from consejo.models import MembershipState, User, UserRole
from consejo.services.policy import get_policy

logger = logging.getLogger(__name__)


def ensure_admin(db: Session, email: str) -> User:
    """Return the administrator account, creating it as an approved member if needed."""
    admin = db.query(User).filter(User.email == email).one_or_none()
    if admin is None:
        admin = User(
            email=email,
            display_name="Administrator",
            role=UserRole.ADMIN,
            membership_state=MembershipState.APPROVED,
            vote_budget=settings.policy_max_vote_budget,
        )
        db.add(admin)
        db.flush()
        logger.info("Created administrator %s (id=%s)", email, admin.id)
    return admin


def seed(db: Session) -> User:
    """Create the policy row and the administrator, then commit."""
    policy = get_policy(db)
    admin = ensure_admin(db, settings.admin_email)
    db.commit()
    logger.info(
        "Seeded policy (petition quorum=%s, approval=%s%%) and admin user %s",
        policy.min_votes_petition,
        policy.approval_percentage,
        admin.id,
    )
    return admin


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    create_tables()
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()
