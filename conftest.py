# conftest.py

import os

import pytest

# Set testing environment BEFORE importing app
# This ensures app.py uses TestingConfig when imported
os.environ["FLASK_ENV"] = "testing"

from app import app as flask_app  # noqa: E402
from roster_app.models import Player, Team, User, db  # noqa: E402


@pytest.fixture(scope="function")
def app(tmp_path):
    """Create and configure a test Flask application"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": False,
            "LOG_LEVEL": "WARNING",
            "IMPORTER_ENABLED": True,
            "IMPORTER_FORMATS": ("csv", "txt", "xlsx", "json"),
            "IMPORTER_MAX_ROWS": 5000,
            "IMPORTER_MAX_UPLOAD_MB": 10,
            "IMPORTER_RECENT_JOBS_LIMIT": 10,
            "IMPORTER_UPLOAD_DIR": str(tmp_path / "uploads"),
            "IMPORTER_ARTIFACT_DIR": str(tmp_path / "artifacts"),
        }
    )

    from roster_app.utils.logging_config import setup_logging

    setup_logging(flask_app)

    with flask_app.app_context():
        # Drop any existing tables to ensure clean state
        db.drop_all()
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def test_team(app):
    """Create the team that receives roster uploads"""
    team = Team(name="Skyline FC")
    db.session.add(team)
    db.session.commit()
    return team


@pytest.fixture
def other_team(app):
    team = Team(name="Harbor United")
    db.session.add(team)
    db.session.commit()
    return team


@pytest.fixture
def test_user(app):
    """Create a coach account"""
    user = User(name="Head Coach", email="coach@example.com", is_active=True)
    user.set_password("password")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def existing_player(test_team):
    player = Player(
        team_id=test_team.id,
        full_name="Sam Kerr",
        email="sam@example.com",
        jersey="20",
        position="Striker",
    )
    db.session.add(player)
    db.session.commit()
    return player


@pytest.fixture
def logged_in_client(client, test_user, test_team):
    """Fixture that logs in the coach and returns the client"""
    response = client.post("/api/login", json={"email": "coach@example.com", "password": "password"})
    assert response.status_code == 200
    yield client
