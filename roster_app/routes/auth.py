# roster_app/routes/auth.py

"""
Session authentication endpoints for API clients
"""

from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from roster_app.models import User

INVALID_CREDENTIALS_MESSAGE = "These credentials do not match our records."


def register_auth_routes(app):
    """Register authentication routes"""

    @app.route("/api/login", methods=["POST"])
    def api_login():
        """Start a session for the user identified by email and password."""
        data = request.get_json(silent=True) or {}
        email = str(data.get("email") or "").strip()
        password = str(data.get("password") or "")

        errors = {}
        if not email:
            errors["email"] = ["The email field is required."]
        if not password:
            errors["password"] = ["The password field is required."]
        if errors:
            first_message = next(iter(errors.values()))[0]
            return jsonify({"message": first_message, "errors": errors}), 422

        user = User.find_by_email(email)
        if user is None or not user.is_active or not user.check_password(password):
            current_app.logger.warning("Failed login attempt for %s", email)
            return (
                jsonify({"message": INVALID_CREDENTIALS_MESSAGE, "errors": {"email": [INVALID_CREDENTIALS_MESSAGE]}}),
                422,
            )

        login_user(user)
        current_app.logger.info("User %s logged in", user.id, extra={"user_id": user.id})
        return jsonify({"user": {"id": user.id, "name": user.name, "email": user.email}}), 200

    @app.route("/api/logout", methods=["POST"])
    @login_required
    def api_logout():
        """End the current session."""
        user_id = current_user.id
        logout_user()
        current_app.logger.info("User %s logged out", user_id, extra={"user_id": user_id})
        return jsonify({"message": "Logged out."}), 200
