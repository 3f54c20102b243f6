"""Seed a demo author and a handful of approved recipes."""

from datetime import datetime

from app import create_app
from models import db
from models.recipe import Recipe
from models.user import User

DEMO_AUTHOR = {
    "username": "chef_demo",
    "email": "chef@example.com",
    "password": "ChefPass123",
}

DEMO_RECIPES = [
    {
        "title": "Perfect Chocolate Chip Cookies",
        "description": "Crispy edges, chewy centers, and loaded with chocolate chips.",
        "category": "Desserts",
        "difficulty": "Easy",
        "prep_time_minutes": 15,
        "cook_time_minutes": 25,
        "servings": 24,
        "ingredients": [
            ("All-purpose flour", "2 1/4", "cups"),
            ("Baking soda", "1", "tsp"),
            ("Salt", "1", "tsp"),
            ("Butter, softened", "1", "cup"),
            ("Granulated sugar", "3/4", "cup"),
            ("Brown sugar", "3/4", "cup"),
            ("Vanilla extract", "2", "tsp"),
            ("Large eggs", "2", "whole"),
            ("Chocolate chips", "2", "cups"),
        ],
        "instructions": [
            "Preheat oven to 375°F (190°C).",
            "In a small bowl, combine flour, baking soda, and salt.",
            "In a large bowl, beat butter and both sugars until creamy.",
            "Beat in vanilla and eggs one at a time.",
            "Gradually blend in flour mixture.",
            "Stir in chocolate chips.",
            "Drop rounded tablespoons of dough onto ungreased cookie sheets.",
            "Bake 9-11 minutes or until golden brown.",
            "Cool on baking sheets for 2 minutes; remove to wire rack.",
        ],
        "tags": ["cookies", "chocolate", "dessert", "baking"],
    },
    {
        "title": "Perfect Scrambled Eggs",
        "description": "Creamy, fluffy scrambled eggs made the right way.",
        "category": "Breakfast",
        "difficulty": "Easy",
        "prep_time_minutes": 5,
        "cook_time_minutes": 5,
        "servings": 2,
        "ingredients": [
            ("Large eggs", "6", "whole"),
            ("Butter", "2", "tbsp"),
            ("Heavy cream", "2", "tbsp"),
            ("Salt", "1/2", "tsp"),
            ("Black pepper", "1/4", "tsp"),
            ("Chives, chopped", "1", "tbsp"),
        ],
        "instructions": [
            "Crack eggs into a bowl and whisk with cream, salt, and pepper.",
            "Heat butter in a non-stick pan over low heat.",
            "Pour in egg mixture and let sit for 20 seconds.",
            "Gently stir with a spatula, pushing eggs from edges to center.",
            "Continue cooking and stirring gently until eggs are just set.",
            "Remove from heat and garnish with chives.",
        ],
        "tags": ["breakfast", "eggs", "quick", "easy"],
    },
    {
        "title": "One-Pot Chicken Alfredo",
        "description": "Creamy chicken alfredo made in just one pot for easy cleanup.",
        "category": "Main Course",
        "difficulty": "Medium",
        "prep_time_minutes": 10,
        "cook_time_minutes": 30,
        "servings": 4,
        "ingredients": [
            ("Chicken breast, cubed", "1", "lb"),
            ("Fettuccine pasta", "12", "oz"),
            ("Heavy cream", "2", "cups"),
            ("Parmesan cheese", "1", "cup"),
            ("Garlic cloves, minced", "3", "whole"),
            ("Olive oil", "2", "tbsp"),
            ("Salt and pepper to taste", None, None),
            ("Fresh parsley for garnish", None, None),
        ],
        "instructions": [
            "Heat olive oil in a large pot and brown the chicken.",
            "Add garlic and cook for 1 minute.",
            "Add cream, 2 cups of water and the pasta; simmer until the pasta is tender.",
            "Stir in parmesan, season, and garnish with parsley.",
        ],
        "tags": ["chicken", "pasta", "one-pot", "dinner", "creamy", "italian", "comfort food"],
    },
    {
        "title": "Fresh Garden Salad",
        "description": "A refreshing garden salad with crisp vegetables and homemade vinaigrette.",
        "category": "Appetizer",
        "difficulty": "Easy",
        "prep_time_minutes": 10,
        "cook_time_minutes": 0,
        "servings": 4,
        "ingredients": [
            ("Mixed greens", "6", "cups"),
            ("Cucumber, sliced", "1", "whole"),
            ("Tomatoes, chopped", "2", "whole"),
            ("Red onion, thinly sliced", "1", "whole"),
            ("Bell pepper, chopped", "1", "whole"),
            ("Olive oil", "1/4", "cup"),
            ("Balsamic vinegar", "2", "tbsp"),
            ("Dijon mustard", "1", "tsp"),
            ("Salt and pepper to taste", None, None),
        ],
        "instructions": [
            "Whisk olive oil, vinegar and mustard into a vinaigrette.",
            "Toss the greens and vegetables in a large bowl.",
            "Dress the salad just before serving.",
        ],
        "tags": ["salad", "healthy", "vegetarian", "fresh", "quick", "light", "summer"],
    },
]


def get_or_create_author() -> User:
    author = User.query.filter_by(email=DEMO_AUTHOR["email"]).first()
    if author is None:
        author = User(
            username=DEMO_AUTHOR["username"],
            email=DEMO_AUTHOR["email"],
            is_verified=True,
        )
        author.set_password(DEMO_AUTHOR["password"])
        db.session.add(author)
        db.session.flush()
    return author


def seed_demo_data() -> list[Recipe]:
    """Insert the demo recipes that are not present yet; returns the new ones."""

    author = get_or_create_author()
    created = []
    for data in DEMO_RECIPES:
        if Recipe.query.filter_by(title=data["title"], author_id=author.id).first():
            continue
        recipe = Recipe(
            author=author,
            title=data["title"],
            description=data["description"],
            category=data["category"],
            difficulty=data["difficulty"],
            prep_time_minutes=data["prep_time_minutes"],
            cook_time_minutes=data["cook_time_minutes"],
            servings=data["servings"],
            moderation_status="approved",
            is_published=True,
            moderated_at=datetime.utcnow(),
        )
        recipe.replace_ingredients(
            [
                {"ingredient": name, "amount": amount, "unit": unit}
                for name, amount, unit in data["ingredients"]
            ]
        )
        recipe.replace_instructions(data["instructions"])
        recipe.replace_tags(data["tags"])
        db.session.add(recipe)
        created.append(recipe)
    db.session.commit()
    return created


def main() -> None:
    app = create_app()
    with app.app_context():
        created = seed_demo_data()
        print(f"Seeded {len(created)} demo recipes.")


if __name__ == "__main__":
    main()
