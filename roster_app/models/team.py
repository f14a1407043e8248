# roster_app/models/team.py

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseModel, db


class Team(BaseModel):
    """A team owning a roster of players and their import jobs."""

    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)

    players = db.relationship("Player", back_populates="team", cascade="all, delete-orphan")
    import_jobs = db.relationship("ImportJob", back_populates="team", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Team {self.name}>"

    @staticmethod
    def find_by_id(team_id):
        """Find team by ID with error handling"""
        try:
            return db.session.get(Team, team_id)
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding team by id {team_id}: {str(e)}")
            return None

    @staticmethod
    def get_default():
        """Return the first team; single-team deployments resolve uploads against it."""
        return Team.query.order_by(Team.id.asc()).first()
