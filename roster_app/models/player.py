# roster_app/models/player.py

from sqlalchemy import UniqueConstraint

from .base import BaseModel, db


class Player(BaseModel):
    """Roster member. Matching identity is the email address within a team."""

    __tablename__ = "players"

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    jersey = db.Column(db.String(5), nullable=True)
    position = db.Column(db.String(100), nullable=True)

    team = db.relationship("Team", back_populates="players")

    __table_args__ = (UniqueConstraint("team_id", "email", name="uq_players_team_email"),)

    def __repr__(self):
        return f"<Player {self.email}>"

    @classmethod
    def snapshot_by_email(cls, team_id):
        """Map lower-cased email to player id for every player on the team."""
        players = cls.query.filter_by(team_id=team_id).order_by(cls.id.asc()).all()
        return {player.email.lower(): player.id for player in players if player.email}
