"""Recipe model and its owned ingredient, instruction and tag rows."""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_

from . import db


MODERATION_STATUSES = ("pending", "approved", "rejected")
DIFFICULTIES = ("Easy", "Medium", "Hard")


class Recipe(db.Model):
    """A submitted recipe moving through the moderation workflow."""

    __tablename__ = "recipes"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    author_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category = db.Column(db.String(100), nullable=False, index=True)
    difficulty = db.Column(db.String(20), nullable=False)
    prep_time_minutes = db.Column(db.Integer, nullable=False, default=0)
    cook_time_minutes = db.Column(db.Integer, nullable=False, default=0)
    servings = db.Column(db.Integer, nullable=False, default=1)
    image_url = db.Column(db.String(512), nullable=True)
    moderation_status = db.Column(
        db.Enum(*MODERATION_STATUSES, name="recipe_moderation_status"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
        index=True,
    )
    moderation_notes = db.Column(db.Text, nullable=True)
    moderated_by = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    moderated_at = db.Column(db.DateTime, nullable=True)
    is_published = db.Column(
        db.Boolean, nullable=False, default=False, server_default=db.false()
    )
    rating = db.Column(db.Float, nullable=False, default=0.0, server_default="0")
    review_count = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    view_count = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    author = db.relationship("User", back_populates="recipes", foreign_keys=[author_id])
    moderator = db.relationship("User", foreign_keys=[moderated_by])
    ingredients = db.relationship(
        "RecipeIngredient",
        back_populates="recipe",
        order_by="RecipeIngredient.position",
        cascade="all, delete-orphan",
    )
    instructions = db.relationship(
        "RecipeInstruction",
        back_populates="recipe",
        order_by="RecipeInstruction.step_number",
        cascade="all, delete-orphan",
    )
    tags = db.relationship(
        "RecipeTag",
        back_populates="recipe",
        order_by="RecipeTag.tag",
        cascade="all, delete-orphan",
    )
    ratings = db.relationship("Rating", back_populates="recipe", cascade="all, delete-orphan")
    favorites = db.relationship("Favorite", back_populates="recipe", cascade="all, delete-orphan")
    comments = db.relationship("Comment", back_populates="recipe", cascade="all, delete-orphan")
    interactions = db.relationship(
        "RecipeInteraction",
        back_populates="recipe",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    @property
    def is_visible(self) -> bool:
        """Whether ordinary users may see this recipe."""

        return self.moderation_status == "approved" and bool(self.is_published)

    @property
    def total_time_minutes(self) -> int:
        return (self.prep_time_minutes or 0) + (self.cook_time_minutes or 0)

    @property
    def tag_names(self) -> list[str]:
        return [tag.tag for tag in self.tags]

    @property
    def ingredient_names(self) -> list[str]:
        return [item.ingredient for item in self.ingredients]

    @staticmethod
    def visible_filter(query):
        """Restrict a query to approved and published recipes."""

        return query.filter(
            and_(
                Recipe.moderation_status == "approved",
                Recipe.is_published.is_(True),
            )
        )

    def approve(self, moderator_id: Optional[int], notes: Optional[str] = None) -> None:
        self._moderate("approved", moderator_id, notes)

    def reject(self, moderator_id: Optional[int], notes: Optional[str] = None) -> None:
        self._moderate("rejected", moderator_id, notes)

    def requeue(self) -> None:
        """Send the recipe back to the moderation queue after an author edit."""

        self.moderation_status = "pending"
        self.is_published = False

    def _moderate(self, status: str, moderator_id: Optional[int], notes: Optional[str]) -> None:
        self.moderation_status = status
        self.is_published = status == "approved"
        self.moderation_notes = notes or None
        self.moderated_by = moderator_id
        self.moderated_at = datetime.utcnow()

    def recompute_rating(self) -> None:
        """Refresh the rating aggregate from the stored ratings."""

        values = [entry.rating for entry in self.ratings]
        if values:
            self.rating = round(sum(values) / len(values), 1)
            self.review_count = len(values)
        else:
            self.rating = 0.0
            self.review_count = 0

    def replace_ingredients(self, items: list[dict]) -> None:
        self.ingredients = [
            RecipeIngredient(
                ingredient=item["ingredient"],
                amount=item.get("amount"),
                unit=item.get("unit"),
                position=index,
            )
            for index, item in enumerate(items)
        ]

    def replace_instructions(self, steps: list[str]) -> None:
        self.instructions = [
            RecipeInstruction(instruction=text, step_number=index)
            for index, text in enumerate(steps, start=1)
        ]

    def replace_tags(self, tags: list[str]) -> None:
        self.tags = [RecipeTag(tag=tag) for tag in tags]

    def to_dict(self, include_details: bool = True) -> dict:
        """Serialize the recipe into a dictionary."""

        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "author_id": self.author_id,
            "author_username": self.author.username if self.author else None,
            "category": self.category,
            "difficulty": self.difficulty,
            "prep_time_minutes": self.prep_time_minutes,
            "cook_time_minutes": self.cook_time_minutes,
            "servings": self.servings,
            "image_url": self.image_url,
            "rating": self.rating,
            "review_count": self.review_count,
            "view_count": self.view_count,
            "moderation_status": self.moderation_status,
            "is_published": self.is_published,
            "tags": self.tag_names,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_details:
            data["ingredients"] = [item.to_dict() for item in self.ingredients]
            data["instructions"] = [step.to_dict() for step in self.instructions]
            data["moderation_notes"] = self.moderation_notes
        return data

    def __repr__(self) -> str:
        return f"<Recipe id={self.id} status={self.moderation_status}>"


class RecipeIngredient(db.Model):
    __tablename__ = "recipe_ingredients"

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(
        db.Integer,
        db.ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ingredient = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.String(50), nullable=True)
    unit = db.Column(db.String(50), nullable=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    recipe = db.relationship("Recipe", back_populates="ingredients")

    def to_dict(self) -> dict:
        return {"ingredient": self.ingredient, "amount": self.amount, "unit": self.unit}


class RecipeInstruction(db.Model):
    __tablename__ = "recipe_instructions"

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(
        db.Integer,
        db.ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    instruction = db.Column(db.Text, nullable=False)
    step_number = db.Column(db.Integer, nullable=False)

    recipe = db.relationship("Recipe", back_populates="instructions")

    def to_dict(self) -> dict:
        return {"step_number": self.step_number, "instruction": self.instruction}


class RecipeTag(db.Model):
    __tablename__ = "recipe_tags"
    __table_args__ = (db.UniqueConstraint("recipe_id", "tag", name="uq_recipe_tags_recipe_tag"),)

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(
        db.Integer,
        db.ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tag = db.Column(db.String(100), nullable=False, index=True)

    recipe = db.relationship("Recipe", back_populates="tags")
