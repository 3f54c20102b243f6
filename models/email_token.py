"""EmailToken model definition."""

from datetime import datetime

from . import db


EMAIL_TOKEN_TYPES = ("email_verification", "password_reset")


class EmailToken(db.Model):
    """Single-use, time-boxed token delivered by email."""

    __tablename__ = "email_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    type = db.Column(
        db.Enum(*EMAIL_TOKEN_TYPES, name="email_token_type"),
        nullable=False,
    )
    expires_at = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, nullable=False, default=False, server_default=db.false())
    used_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    user = db.relationship("User", back_populates="email_tokens")

    def mark_used(self, now: datetime | None = None) -> None:
        self.used = True
        self.used_at = now or datetime.utcnow()

    def __repr__(self) -> str:
        return f"<EmailToken id={self.id} type={self.type} used={self.used}>"
