"""
Test configuration and fixtures.
"""
import os
import tempfile
from datetime import datetime
from typing import Dict, Generator, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set test configuration before importing the app. A file database lets the
# dispatcher's worker threads and the request sessions see the same data.
TEST_DB_PATH = os.path.join(tempfile.mkdtemp(prefix="ratings-tests-"), "ratings.db")
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["JWT_SECRET_KEY"] = "test-signing-key-0123456789abcdefghijklmnop"
os.environ["RATE_LIMIT"] = "10000/minute"
os.environ.pop("VAPID_PRIVATE_KEY", None)
os.environ.pop("VAPID_PUBLIC_KEY", None)

from ratings_api.main import app
from ratings_api.core.deps import get_dispatcher
from ratings_api.core.errors import DeliveryError
from ratings_api.core.periods import Period, date_range
from ratings_api.core.security import create_access_token, hash_password
from ratings_api.db.base import Base
from ratings_api.db.session import SessionLocal, engine, get_db
from ratings_api.models.group import Group, GroupMembership, Role
from ratings_api.models.rating import Rating
from ratings_api.models.restaurant import Restaurant
from ratings_api.models.user import User


class FakeTransport:
    """Records sends; raises the configured error for chosen endpoints."""

    def __init__(self, failures: Dict[str, DeliveryError] = None):
        self.failures = failures or {}
        self.sent: List[Tuple[str, str]] = []

    def send(self, subscription_info, body):
        endpoint = subscription_info["endpoint"]
        if endpoint in self.failures:
            raise self.failures[endpoint]
        self.sent.append((endpoint, body))


class FakeDispatcher:
    """Stands in for NotificationDispatcher on the request path."""

    def __init__(self):
        self.calls: List[Tuple[str, str]] = []

    def dispatch(self, group_id: str, message: str):
        self.calls.append((group_id, message))


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema and session for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture(scope="function")
def client(db: Session, dispatcher: FakeDispatcher) -> Generator[TestClient, None, None]:
    """Create test client with database session and dispatcher overrides."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def make_user(db: Session, username: str, color: str = None) -> User:
    user = User(username=username, password=hash_password("password123"), color=color)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_group(db: Session, admin: User, *members: User, name: str = "Lunch Club") -> Group:
    group = Group(name=name)
    db.add(group)
    db.flush()
    db.add(GroupMembership(group_id=group.id, user_id=admin.id, role=Role.ADMIN))
    for member in members:
        db.add(GroupMembership(group_id=group.id, user_id=member.id, role=Role.MEMBER))
    db.commit()
    db.refresh(group)
    return group


def make_restaurant(db: Session, restaurant_id: str, cuisine: str = "Italian") -> Restaurant:
    restaurant = Restaurant(id=restaurant_id, cuisine=cuisine)
    db.add(restaurant)
    db.commit()
    return restaurant


def add_past_rating(
    db: Session,
    group: Group,
    restaurant_id: str,
    user: User,
    score: float,
    year: int,
    period: Period,
) -> Rating:
    """Insert a rating stamped at noon on the first day of a past quarter."""
    start, _ = date_range(period, year)
    stamp = datetime(start.year, start.month, start.day, 12, 0)
    rating = Rating(
        group_id=group.id,
        restaurant_id=restaurant_id,
        user_id=user.id,
        username=user.username,
        score=score,
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(rating)
    db.commit()
    db.refresh(rating)
    return rating


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id, username=user.username)}"}


@pytest.fixture
def alice(db: Session) -> User:
    return make_user(db, "alice", color="#ff0000")


@pytest.fixture
def bob(db: Session) -> User:
    return make_user(db, "bob", color="#0000ff")


@pytest.fixture
def carol(db: Session) -> User:
    return make_user(db, "carol")


@pytest.fixture
def group(db: Session, alice: User, bob: User) -> Group:
    """Two-member group: alice (Admin) and bob."""
    return make_group(db, alice, bob)


@pytest.fixture
def pizzeria(db: Session) -> Restaurant:
    return make_restaurant(db, "pizzeria")
