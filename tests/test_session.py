# tests/test_session.py
"""Transaction behaviour of engines built by ``consejo.db.session``."""

from collections.abc import Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from consejo.db.session import Base, build_engine
from consejo.models import (
    MembershipRequest,
    MembershipState,
    Petition,
    PetitionLike,
    PetitionState,
    User,
    VoteChoice,
)
from consejo.services.errors import CapacityExhaustedError
from consejo.services.membership import open_request_for_applicant
from consejo.services.petition_service import like_petition
from consejo.services.policy import get_policy
from consejo.services.voting import VotingService


@pytest.fixture()
def app_engine() -> Iterator[Engine]:
    """A standalone engine configured exactly as the application's."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(app_engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=app_engine)


@pytest.fixture()
def seeded(session_factory, clock) -> dict[str, int]:
    with session_factory() as db:
        get_policy(db)
        voter = User(
            email="voter@example.org",
            display_name="Voter",
            membership_state=MembershipState.APPROVED,
            vote_budget=0,
            last_budget_regen_at=clock(),
            created_at=clock(),
        )
        applicant = User(
            email="applicant@example.org",
            display_name="Applicant",
            membership_state=MembershipState.PENDING_APPROVAL,
            created_at=clock(),
        )
        db.add_all([voter, applicant])
        db.flush()
        petition = Petition(
            author_user_id=applicant.id,
            title="Benches in the park",
            description="More benches near the playground.",
            image_urls=[],
            state=PetitionState.IN_REVIEW,
            created_at=clock(),
        )
        db.add(petition)
        db.commit()
        return {"voter": voter.id, "applicant": applicant.id, "petition": petition.id}


def test_refused_vote_leaves_no_materialized_request(session_factory, seeded, clock) -> None:
    """Rolling back after a refused vote also discards the request row opened for it."""
    db = session_factory()
    try:
        voter = db.get(User, seeded["voter"])
        request = open_request_for_applicant(db, seeded["applicant"], clock())
        with pytest.raises(CapacityExhaustedError):
            VotingService(db, clock).cast_membership_vote(voter, request.id, VoteChoice.APPROVE)
        db.rollback()
    finally:
        db.close()

    with session_factory() as fresh:
        assert fresh.query(MembershipRequest).count() == 0


def test_rollback_discards_like_written_in_savepoint(session_factory, seeded) -> None:
    db = session_factory()
    try:
        voter = db.get(User, seeded["voter"])
        like_petition(db, seeded["petition"], voter)
        db.rollback()
    finally:
        db.close()

    with session_factory() as fresh:
        assert fresh.query(PetitionLike).count() == 0
        assert fresh.get(Petition, seeded["petition"]).likes == 0
