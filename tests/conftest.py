# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from consejo.api.v1.dependencies import get_clock
from consejo.core.security import create_access_token
from consejo.db.session import Base, build_engine
from consejo.db.session import get_db as app_get_session
from consejo.main import app as fastapi_app
from consejo.models import (
    MembershipRequest,
    MembershipRequestState,
    MembershipState,
    Petition,
    PetitionState,
    PolicyConfig,
    User,
    UserRole,
)
from consejo.services.policy import get_policy

TEST_DB_URL = "sqlite://"

# Monday noon, far from a UTC day boundary.
FIXED_NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)

_EMAIL_COUNTER = count(1)


class FrozenClock:
    """Injectable clock that only moves when a test says so."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, clock: FrozenClock) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_clock, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def policy(db_session: Session) -> PolicyConfig:
    """Policy row with a small petition quorum so tests can reach it."""
    config = get_policy(db_session)
    config.min_votes_petition = 3
    config.approval_percentage = 70
    config.max_vote_budget = 10
    config.regen_interval_minutes = 2
    db_session.commit()
    return config


@pytest.fixture()
def make_user(db_session: Session, clock: FrozenClock) -> Callable[..., User]:
    """Return a factory persisting users; defaults to an approved member."""

    def _make_user(
        *,
        display_name: str | None = None,
        membership_state: MembershipState = MembershipState.APPROVED,
        role: UserRole = UserRole.MEMBER,
        vote_budget: int = 10,
        last_budget_regen_at: datetime | None = None,
    ) -> User:
        n = next(_EMAIL_COUNTER)
        user = User(
            email=f"user{n}@example.org",
            display_name=display_name or f"User {n}",
            role=role,
            membership_state=membership_state,
            vote_budget=vote_budget,
            last_budget_regen_at=last_budget_regen_at or clock(),
            created_at=clock(),
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def member(make_user: Callable[..., User]) -> User:
    return make_user(display_name="Member")


@pytest.fixture()
def other_member(make_user: Callable[..., User]) -> User:
    return make_user(display_name="Other Member")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user(display_name="Admin", role=UserRole.ADMIN)


@pytest.fixture()
def applicant(make_user: Callable[..., User]) -> User:
    return make_user(display_name="Applicant", membership_state=MembershipState.PENDING_APPROVAL)


@pytest.fixture()
def make_request(db_session: Session, make_user: Callable[..., User], clock: FrozenClock):
    """Return a factory persisting a pending membership request for a fresh applicant."""

    def _make_request(applicant: User | None = None, text: str = "I would like to join the council") -> MembershipRequest:
        applicant = applicant or make_user(membership_state=MembershipState.PENDING_APPROVAL)
        request = MembershipRequest(
            applicant_user_id=applicant.id,
            text=text,
            state=MembershipRequestState.PENDING,
            created_at=clock(),
        )
        db_session.add(request)
        db_session.commit()
        return request

    return _make_request


@pytest.fixture()
def membership_request(make_request, applicant: User) -> MembershipRequest:
    return make_request(applicant)


@pytest.fixture()
def petition(db_session: Session, member: User, clock: FrozenClock) -> Petition:
    petition = Petition(
        author_user_id=member.id,
        title="Longer library hours",
        description="Keep the public library open until 22:00 on weekdays.",
        image_urls=[],
        state=PetitionState.IN_REVIEW,
        created_at=clock(),
    )
    db_session.add(petition)
    db_session.commit()
    return petition


def _bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building authorization headers for a user."""
    return _bearer
