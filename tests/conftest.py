from datetime import datetime, timezone

import pytest
from passlib.hash import pbkdf2_sha256

from app import create_app
from db import db
from services.clock import FixedClock
from services.repositories import UserRepository
from services.workspace import registry

PASSWORD = "correct-horse-battery"


@pytest.fixture
def clock():
    """Frozen at 2024-01-01 09:00 UTC so sprint dates in 2024 are not in the past"""
    return FixedClock(datetime(2024, 1, 1, 9, 0, tzinfo = timezone.utc))


@pytest.fixture
def app(clock):
    app = create_app("sqlite://", config = {
        "TESTING": True,
        "JWT_SECRET_KEY": "test-secret",
        "RETRY_INITIAL_DELAY_MS": 0,
    })
    with app.app_context():
        db.create_all()
        registry().clock = clock
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Create a user whose password is PASSWORD"""
    def make(username):
        users = UserRepository(registry().retry, registry().clock)
        return users.create(
            {"username": username, "email": f"{username}@example.com"},
            pbkdf2_sha256.hash(PASSWORD)
        )
    return make


@pytest.fixture
def open_workspace(app):
    def open_(identifier):
        return registry().open(identifier, PASSWORD)
    return open_


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


@pytest.fixture
def owner_workspace(alice, open_workspace):
    return open_workspace("alice")
