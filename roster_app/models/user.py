# roster_app/models/user.py

from flask import current_app
from flask_login import UserMixin
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseModel, db


class User(BaseModel, UserMixin):
    """Operator account that uploads and applies roster imports."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    import_jobs = db.relationship("ImportJob", back_populates="user")

    def __repr__(self):
        return f"<User {self.email}>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def find_by_email(email):
        """Find user by email with error handling"""
        if not email:
            return None
        try:
            return User.query.filter_by(email=email.strip().lower()).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding user by email {email}: {str(e)}")
            return None
