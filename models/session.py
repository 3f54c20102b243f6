"""Server-side session records backing issued access tokens."""

from datetime import datetime
from typing import Optional

from . import db


class UserSession(db.Model):
    """Maps an access token identifier to a user with an expiry."""

    __tablename__ = "user_sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    user = db.relationship("User", back_populates="sessions")

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at > (now or datetime.utcnow())

    def __repr__(self) -> str:
        return f"<UserSession id={self.id} user_id={self.user_id}>"
