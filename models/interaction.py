"""Recipe interaction events used for analytics."""

from datetime import datetime

from . import db


INTERACTION_TYPES = ("view", "rating", "favorite", "share")


class RecipeInteraction(db.Model):
    __tablename__ = "recipe_interactions"

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(
        db.Integer,
        db.ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    interaction_type = db.Column(
        db.Enum(*INTERACTION_TYPES, name="recipe_interaction_type"),
        nullable=False,
    )
    created_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, index=True
    )

    recipe = db.relationship("Recipe", back_populates="interactions")

    def __repr__(self) -> str:
        return f"<RecipeInteraction recipe_id={self.recipe_id} type={self.interaction_type}>"
