from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from adhivakta import create_app
from adhivakta.core.config import Config
from adhivakta.core.extensions import db
from adhivakta.core.identity import Identity
from adhivakta.core.models import Case, User, seed_demo_data


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret"
    TASKS_EAGER = True
    STORAGE_BACKEND = "local"
    NOTIFY_EMAIL_PROVIDER = "dev"
    NOTIFY_SMS_PROVIDER = "dev"
    LOG_LEVEL = "WARNING"


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        STORAGE_ROOT = str(tmp_path / "storage")

    app = create_app(_Config)
    with app.app_context():
        db.create_all()
        seed_demo_data(db.session)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _user(email: str) -> User:
    return User.query.filter_by(email=email).one()


@pytest.fixture
def users(app):
    return {
        "admin": _user("admin@adhivakta.local"),
        "lawyer": _user("lawyer@adhivakta.local"),
        "associate": _user("associate@adhivakta.local"),
        "client": _user("client@adhivakta.local"),
        "other_client": _user("meera@adhivakta.local"),
    }


@pytest.fixture
def identities(users):
    return {key: Identity.from_user(user) for key, user in users.items()}


@pytest.fixture
def demo_case(app):
    return Case.query.filter_by(case_number="DIS-000001").one()


def _login(client, email: str, password: str):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return response


@pytest.fixture
def login_admin(client):
    return lambda: _login(client, "admin@adhivakta.local", "admin123")


@pytest.fixture
def login_lawyer(client):
    return lambda: _login(client, "lawyer@adhivakta.local", "lawyer123")


@pytest.fixture
def login_associate(client):
    return lambda: _login(client, "associate@adhivakta.local", "associate123")


@pytest.fixture
def login_client(client):
    return lambda: _login(client, "client@adhivakta.local", "client123")


@pytest.fixture
def login_other_client(client):
    return lambda: _login(client, "meera@adhivakta.local", "meera123")
