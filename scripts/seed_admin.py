"""Create or update the owner account."""

import os

from app import create_app
from models import db
from models.user import User

OWNER_USERNAME = os.getenv("OWNER_USERNAME", "owner")
OWNER_EMAIL = os.getenv("OWNER_EMAIL", "owner@example.com").strip().lower()
OWNER_PASSWORD = os.getenv("OWNER_PASSWORD", "OwnerPass123")


def seed_owner(
    username: str = OWNER_USERNAME,
    email: str = OWNER_EMAIL,
    password: str = OWNER_PASSWORD,
) -> tuple[User, str]:
    """Ensure an active, verified owner exists; returns the user and what happened."""

    owner = User.query.filter_by(email=email).first()
    if owner is None:
        owner = User(username=username, email=email)
        db.session.add(owner)
        action = "created"
    else:
        action = "updated"
    owner.role = "owner"
    owner.status = "active"
    owner.is_verified = True
    owner.set_password(password)
    db.session.commit()
    return owner, action


def main() -> None:
    app = create_app()
    with app.app_context():
        owner, action = seed_owner()
        print(f"Owner user {action}: {owner.email}")


if __name__ == "__main__":
    main()
