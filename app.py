# app.py

import logging
import os

import click
from dotenv import load_dotenv
from flask import Flask, current_app, jsonify
from flask_login import LoginManager
from sqlalchemy import event

# Load environment variables from .env file first
load_dotenv()

# Module imports after load_dotenv() - E402 is intentional
from config import DevelopmentConfig, ProductionConfig, TestingConfig  # noqa: E402
from config.monitoring import (  # noqa: E402
    DevelopmentMonitoringConfig,
    ProductionMonitoringConfig,
    TestingMonitoringConfig,
)
from config.validation import validate_and_exit  # noqa: E402
from roster_app.importer import init_importer  # noqa: E402
from roster_app.models import Team, User, db  # noqa: E402
from roster_app.routes import init_routes  # noqa: E402
from roster_app.utils.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)

app = Flask(__name__)

# Validate environment variables (only in production)
flask_env = os.environ.get("FLASK_ENV", "development")
if flask_env == "production":
    validate_and_exit(flask_env)

# Load configuration based on the environment
if flask_env == "production":
    app.config.from_object(ProductionConfig)
    app.config.from_object(ProductionMonitoringConfig)
elif flask_env == "testing":
    app.config.from_object(TestingConfig)
    app.config.from_object(TestingMonitoringConfig)
else:
    app.config.from_object(DevelopmentConfig)
    app.config.from_object(DevelopmentMonitoringConfig)

# Initialize extensions
db.init_app(app)
login_manager = LoginManager()
login_manager.init_app(app)

# Register login manager in app extensions for testing
app.extensions["login_manager"] = login_manager

setup_logging(app)


def _configure_sqlite_connection_factory(*, enable_foreign_keys: bool):
    """Return a connection hook applying concurrency-friendly pragmas."""

    def _configure_sqlite_connection(dbapi_connection, connection_record):  # pragma: no cover - instrumentation
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=5000")
            if enable_foreign_keys:
                cursor.execute("PRAGMA foreign_keys=ON")
        except Exception as exc:
            logger.warning("Failed to apply SQLite PRAGMAs: %s", exc)
        finally:
            cursor.close()

    return _configure_sqlite_connection


with app.app_context():
    engine = db.engine
    if engine.url.drivername.startswith("sqlite"):
        if not getattr(engine, "_sqlite_pragmas_configured", False):
            pragma_hook = _configure_sqlite_connection_factory(
                enable_foreign_keys=not app.config.get("TESTING", False)
            )
            event.listen(engine, "connect", pragma_hook)
            engine._sqlite_pragmas_configured = True  # type: ignore[attr-defined]
    # Create the database tables only if not in testing mode
    if not app.config.get("TESTING", False):
        db.create_all()


# User loader callback for Flask-Login
@login_manager.user_loader
def load_user(user_id):
    try:
        return db.session.get(User, int(user_id))
    except (ValueError, TypeError):
        return None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"message": "Unauthenticated."}), 401


# Initialize routes and the importer
init_routes(app)
init_importer(app)


@app.cli.command("init-db")
@click.option("--team-name", default="Skyline FC", show_default=True, help="Name of the default team.")
@click.option("--coach-email", default="coach@example.com", show_default=True)
@click.option("--coach-password", default="password", show_default=True)
def init_db_command(team_name, coach_email, coach_password):
    """Create tables and seed the default team and coach account."""
    db.create_all()

    team = Team.query.filter_by(name=team_name).first()
    if team is None:
        team = Team(name=team_name)
        db.session.add(team)

    email = coach_email.strip().lower()
    coach = User.find_by_email(email)
    if coach is None:
        coach = User(name="Head Coach", email=email)
        db.session.add(coach)
    coach.set_password(coach_password)
    db.session.commit()

    current_app.logger.info("Database initialised", extra={"team_id": team.id, "user_id": coach.id})
    click.echo(f"Team '{team.name}' (id={team.id}) and coach {coach.email} are ready.")


# Register error handlers
@app.errorhandler(404)
def not_found_error(error):
    return jsonify({"message": "Not found."}), 404


@app.errorhandler(413)
def request_entity_too_large(error):
    return jsonify({"message": "Upload exceeds maximum size limit."}), 413


@app.errorhandler(500)
def internal_error(error):
    db.session.rollback()
    current_app.logger.error("Unhandled server error: %s", error)
    return jsonify({"message": "Server error."}), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port)
