"""User model definition."""

from datetime import datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from utils.permissions import (
    can_moderate_user,
    get_role_level,
    has_permission,
    has_specific_permission,
)

from . import db


USER_ROLES = ("user", "moderator", "admin", "owner")
USER_STATUSES = ("active", "suspended", "banned", "pending")


class User(db.Model):
    """Represents a registered account."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    avatar = db.Column(db.String(512), nullable=True)
    bio = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(120), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    role = db.Column(
        db.String(20),
        nullable=False,
        default="user",
        server_default=db.text("'user'"),
    )
    status = db.Column(
        db.String(20),
        nullable=False,
        default="active",
        server_default=db.text("'active'"),
    )
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    suspension_reason = db.Column(db.Text, nullable=True)
    suspension_expires_at = db.Column(db.DateTime, nullable=True)
    warning_count = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    last_login_at = db.Column(db.DateTime, nullable=True)

    recipes = db.relationship(
        "Recipe",
        back_populates="author",
        cascade="all, delete-orphan",
        foreign_keys="Recipe.author_id",
    )
    ratings = db.relationship("Rating", back_populates="user", cascade="all, delete-orphan")
    favorites = db.relationship("Favorite", back_populates="user", cascade="all, delete-orphan")
    comments = db.relationship("Comment", back_populates="author", cascade="all, delete-orphan")
    sessions = db.relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    email_tokens = db.relationship("EmailToken", back_populates="user", cascade="all, delete-orphan")
    moderation_notes = db.relationship(
        "ModerationNote",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="ModerationNote.user_id",
        order_by="ModerationNote.created_at.desc()",
    )

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    @property
    def is_active_account(self) -> bool:
        return self.status == "active"

    @property
    def role_level(self) -> int:
        return get_role_level(self.role)

    def has_role(self, required_role: str) -> bool:
        return has_permission(self.role, required_role)

    def can(self, permission: str) -> bool:
        return has_specific_permission(self.role, permission)

    def can_moderate(self, other: "User") -> bool:
        return can_moderate_user(self.role, other.role)

    def mark_verified(self) -> None:
        self.is_verified = True

    def suspend(self, reason: str, duration_days: int, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        self.status = "suspended"
        self.suspension_reason = reason
        self.suspension_expires_at = now + timedelta(days=duration_days)

    def reinstate(self) -> None:
        self.status = "active"
        self.suspension_reason = None
        self.suspension_expires_at = None

    def ban(self, reason: str) -> None:
        self.status = "banned"
        self.suspension_reason = reason
        self.suspension_expires_at = None

    def lift_expired_suspension(self, now: Optional[datetime] = None) -> bool:
        """Reinstate a suspended account whose suspension has run out."""

        now = now or datetime.utcnow()
        if (
            self.status == "suspended"
            and self.suspension_expires_at is not None
            and self.suspension_expires_at <= now
        ):
            self.reinstate()
            return True
        return False

    def to_dict(self, include_private: bool = False) -> dict:
        """Serialize the user; private fields only for the owner and staff."""

        data = {
            "id": self.id,
            "username": self.username,
            "avatar": self.avatar,
            "bio": self.bio,
            "location": self.location,
            "website": self.website,
            "role": self.role,
            "is_verified": self.is_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_private:
            data.update(
                {
                    "email": self.email,
                    "status": self.status,
                    "warning_count": self.warning_count,
                    "suspension_reason": self.suspension_reason,
                    "suspension_expires_at": self.suspension_expires_at.isoformat()
                    if self.suspension_expires_at
                    else None,
                    "last_login_at": self.last_login_at.isoformat()
                    if self.last_login_at
                    else None,
                    "updated_at": self.updated_at.isoformat() if self.updated_at else None,
                }
            )
        return data

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.username}>"
