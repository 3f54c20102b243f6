"""ModerationNote model definition."""

from datetime import datetime

from . import db


MODERATION_ACTIONS = (
    "warning",
    "suspension",
    "reinstatement",
    "ban",
    "note",
    "verification",
    "role_change",
)


class ModerationNote(db.Model):
    """Audit entry written for every moderation action taken on a user."""

    __tablename__ = "moderation_notes"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    moderator_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    action = db.Column(
        db.Enum(*MODERATION_ACTIONS, name="moderation_action"),
        nullable=False,
    )
    note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    user = db.relationship("User", foreign_keys=[user_id], back_populates="moderation_notes")
    moderator = db.relationship("User", foreign_keys=[moderator_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "moderator_id": self.moderator_id,
            "moderator_name": self.moderator.username if self.moderator else None,
            "action": self.action,
            "note": self.note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
