"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from icebreaker.core.auth import Principal, get_current_principal
from icebreaker.core.database import get_session
from icebreaker.core.deps import get_notifier, get_refresher
from icebreaker.main import app
from icebreaker.models import Activity, Event, User
from icebreaker.realtime import EventChannel, RealtimeNotifier
from icebreaker.review.sync import ReviewRefresher

ADMIN = Principal(uid="admin-1", email="admin@example.com", email_verified=True)


class RecordingChannel(EventChannel):
    """Channel that records every broadcast instead of needing sockets."""

    def __init__(self):
        super().__init__()
        self.sent: list[tuple[str, str, dict]] = []

    async def broadcast(self, event_id: str, event_name: str, payload: dict) -> int:
        self.sent.append((event_id, event_name, payload))
        return await super().broadcast(event_id, event_name, payload)

    def names(self) -> list[str]:
        return [name for _, name, _ in self.sent]


class AuthState:
    """Mutable stand-in for the identity provider."""

    def __init__(self):
        self.principal = ADMIN

    def login(self, uid: str, email_verified: bool = False) -> Principal:
        self.principal = Principal(uid=uid, email=f"{uid}@example.com", email_verified=email_verified)
        return self.principal

    def as_admin(self) -> Principal:
        self.principal = ADMIN
        return self.principal


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="refresher")
def refresher_fixture(engine) -> ReviewRefresher:
    return ReviewRefresher(lambda: Session(engine))


@pytest.fixture(name="channel")
def channel_fixture() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture(name="notifier")
def notifier_fixture(channel: RecordingChannel) -> RealtimeNotifier:
    return RealtimeNotifier(channel)


@pytest.fixture(name="auth")
def auth_fixture() -> AuthState:
    return AuthState()


@pytest.fixture(name="client")
def client_fixture(
    session: Session,
    refresher: ReviewRefresher,
    notifier: RealtimeNotifier,
    auth: AuthState,
):
    """Create a test client with the test database, identity and channel."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_current_principal] = lambda: auth.principal
    app.dependency_overrides[get_refresher] = lambda: refresher
    app.dependency_overrides[get_notifier] = lambda: notifier
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


def add_event(session: Session, activity_ids: list[str] | None = None, **fields) -> Event:
    event = Event(
        name=fields.pop("name", "Kickoff"),
        description=fields.pop("description", "Team icebreaker"),
        activity_ids=activity_ids or [],
        **fields,
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


def add_activity(session: Session, event: Event, activity_id: str, kind: str = "partner", **fields) -> Activity:
    activity = Activity(
        id=activity_id,
        event_id=event.id,
        type=kind,
        title=fields.pop("title", f"Title {activity_id}"),
        question=fields.pop("question", f"Question {activity_id}?"),
        **fields,
    )
    event.add_activity(activity_id)
    session.add(activity)
    session.add(event)
    session.commit()
    session.refresh(activity)
    session.refresh(event)
    return activity


def add_user(session: Session, event: Event, user_id: str, **fields) -> User:
    user = User(
        id=user_id,
        event_id=event.id,
        name=fields.pop("name", f"Name {user_id}"),
        email=fields.pop("email", f"{user_id}@example.com"),
        icon=fields.pop("icon", f"icon-{user_id}"),
        description=fields.pop("description", f"About {user_id}"),
        **fields,
    )
    event.add_participant(user_id)
    session.add(user)
    session.add(event)
    session.commit()
    session.refresh(user)
    session.refresh(event)
    return user


@pytest.fixture(name="partner_event")
def partner_event_fixture(session: Session) -> Event:
    """Event E1 with one partner activity A1 and participants U1, U2."""
    event = add_event(session, id="E1")
    add_activity(session, event, "A1", kind="partner")
    add_user(session, event, "U1")
    add_user(session, event, "U2")
    return event
