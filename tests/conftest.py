"""Shared test fixtures for the TaskHub notification backend."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskhub.database import Base, get_db, get_session_factory
from taskhub.main import app
from taskhub.models import Notification, NotificationCategory, NotificationPriority, Team, Task, User, UserRole
from taskhub.services.websocket_manager import websocket_manager
from taskhub.utils.auth import create_access_token


class FakeBus:
    """Records publishes instead of writing to sockets."""

    def __init__(self):
        self.published = []
        self.memberships = set()

    def join(self, connection_id, room):
        self.memberships.add((connection_id, room))

    def leave(self, connection_id, room):
        self.memberships.discard((connection_id, room))

    async def publish(self, room, event, payload, exclude=None):
        self.published.append((room, event, payload))
        return 1

    def events_for(self, room):
        return [(event, payload) for r, event, payload in self.published if r == room]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_websocket_manager():
    websocket_manager.connections.clear()
    websocket_manager.rooms.clear()
    yield
    websocket_manager.connections.clear()
    websocket_manager.rooms.clear()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def client(db, session_factory):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def fake_bus():
    return FakeBus()


@pytest.fixture
def make_user(db):
    def _make_user(email, role=UserRole.EMPLOYEE.value, name=None):
        user = User(email=email, role=role, name=name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user("boss@admin.com", UserRole.ADMIN.value, "Boss")


@pytest.fixture
def subadmin(make_user):
    return make_user("lead@subadmin.com", UserRole.SUBADMIN.value, "Lead")


@pytest.fixture
def alice(make_user):
    return make_user("alice@emp.com", name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob@emp.com", name="Bob")


@pytest.fixture
def carol(make_user):
    return make_user("carol@emp.com")


@pytest.fixture
def team(db, subadmin, alice, bob, carol):
    team = Team(name="Platform", subadmin_id=subadmin.id)
    team.members = [alice, bob, carol]
    db.add(team)
    db.commit()
    db.refresh(team)
    return team


@pytest.fixture
def task(db, admin, alice, team):
    task = Task(title="Ship release", created_by=admin.id, assignee_id=alice.id, team_id=team.id)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


@pytest.fixture
def make_notification(db):
    def _make_notification(recipient, sender, category=NotificationCategory.ASSIGNMENT, message="Something happened", **kwargs):
        notification = Notification(
            recipient_id=recipient.id,
            sender_id=sender.id,
            message=message,
            type=category.value,
            category=category,
            priority=kwargs.pop("priority", NotificationPriority.PRIMARY),
            meta=kwargs.pop("meta", {}),
            **kwargs,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification
    return _make_notification


@pytest.fixture
def token_for():
    def _token_for(user):
        return create_access_token({"sub": user.email})
    return _token_for


@pytest.fixture
def auth_headers(token_for):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _auth_headers
