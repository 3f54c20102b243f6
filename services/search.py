"""In-memory recipe search with relevance ranking and facet counts."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from sqlalchemy.orm import selectinload

from models.recipe import DIFFICULTIES, Recipe

SORT_OPTIONS = ("relevance", "rating", "newest", "popular", "quickest")
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50
FACET_TAG_LIMIT = 20

SUGGESTED_SEARCHES = [
    "chocolate chip cookies",
    "chicken dinner",
    "vegetarian pasta",
    "quick breakfast",
    "healthy salad",
    "comfort food",
    "dessert recipes",
    "one pot meals",
    "grilled chicken",
    "fresh herbs",
]


@dataclass
class SearchFilters:
    query: str | None = None
    category: str | None = None
    difficulty: str | None = None
    tags: list[str] = field(default_factory=list)
    max_prep_time: int | None = None
    max_cook_time: int | None = None
    min_rating: float | None = None
    sort_by: str = "relevance"


@dataclass
class SearchResult:
    recipes: list[Recipe]
    total_count: int
    page: int
    limit: int
    filters: dict

    def to_dict(self) -> dict:
        return {
            "recipes": [recipe.to_dict(include_details=False) for recipe in self.recipes],
            "total_count": self.total_count,
            "page": self.page,
            "limit": self.limit,
            "filters": self.filters,
        }


def load_visible_recipes() -> list[Recipe]:
    """Fetch every visible recipe with the collections search reads eagerly."""

    query = Recipe.visible_filter(Recipe.query).options(
        selectinload(Recipe.tags),
        selectinload(Recipe.ingredients),
        selectinload(Recipe.author),
    )
    return query.order_by(Recipe.created_at.desc()).all()


def _is_set(value: str | None) -> bool:
    return bool(value) and value.lower() != "all"


def relevance_score(recipe: Recipe, query: str) -> float:
    """Score how well ``recipe`` matches ``query``; popularity adds a small boost."""

    needle = query.lower()
    score = 0.0
    title = recipe.title.lower()
    if needle in title:
        score += 10
        if title.startswith(needle):
            score += 5
    if needle in (recipe.category or "").lower():
        score += 8
    score += 6 * sum(1 for tag in recipe.tag_names if needle in tag.lower())
    if needle in (recipe.description or "").lower():
        score += 3
    score += 2 * sum(1 for name in recipe.ingredient_names if needle in name.lower())
    score += min(recipe.rating or 0, 5) * 0.5
    score += min((recipe.view_count or 0) / 100, 2)
    return score


def _searchable_text(recipe: Recipe) -> str:
    author = recipe.author.username if recipe.author else ""
    parts = [recipe.title, recipe.description or "", author]
    parts.extend(recipe.tag_names)
    parts.extend(recipe.ingredient_names)
    return " ".join(parts).lower()


class RecipeSearchEngine:
    """Filters, ranks and pages a snapshot of visible recipes."""

    def __init__(self, recipes: Sequence[Recipe] | None = None):
        self._recipes = list(recipes) if recipes is not None else None

    @property
    def recipes(self) -> list[Recipe]:
        if self._recipes is None:
            self._recipes = load_visible_recipes()
        return self._recipes

    def search(
        self,
        filters: SearchFilters,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> SearchResult:
        page = max(page, 1)
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        matches = self.apply_filters(self.recipes, filters)
        matches = self.sort(matches, filters.sort_by, filters.query)

        start = (page - 1) * limit
        return SearchResult(
            recipes=matches[start : start + limit],
            total_count=len(matches),
            page=page,
            limit=limit,
            filters=self.facets(self.recipes),
        )

    @staticmethod
    def apply_filters(recipes: Iterable[Recipe], filters: SearchFilters) -> list[Recipe]:
        results = list(recipes)

        if filters.query:
            needle = filters.query.lower()
            results = [recipe for recipe in results if needle in _searchable_text(recipe)]

        if _is_set(filters.category):
            wanted = filters.category.lower()
            results = [r for r in results if (r.category or "").lower() == wanted]

        if _is_set(filters.difficulty):
            wanted = filters.difficulty.lower()
            results = [r for r in results if (r.difficulty or "").lower() == wanted]

        if filters.tags:
            wanted_tags = [tag.lower() for tag in filters.tags if tag]
            results = [
                r
                for r in results
                if any(want in tag.lower() for want in wanted_tags for tag in r.tag_names)
            ]

        if filters.max_prep_time is not None:
            results = [r for r in results if r.prep_time_minutes <= filters.max_prep_time]

        if filters.max_cook_time is not None:
            results = [r for r in results if r.cook_time_minutes <= filters.max_cook_time]

        if filters.min_rating is not None:
            results = [r for r in results if (r.rating or 0) >= filters.min_rating]

        return results

    @staticmethod
    def sort(recipes: list[Recipe], sort_by: str | None, query: str | None = None) -> list[Recipe]:
        if sort_by == "rating":
            return sorted(recipes, key=lambda r: (r.rating or 0, r.review_count or 0), reverse=True)
        if sort_by == "newest":
            return sorted(recipes, key=lambda r: r.created_at, reverse=True)
        if sort_by == "popular":
            return sorted(recipes, key=lambda r: r.view_count or 0, reverse=True)
        if sort_by == "quickest":
            return sorted(recipes, key=lambda r: r.total_time_minutes)
        if query:
            return sorted(recipes, key=lambda r: relevance_score(r, query), reverse=True)
        return sorted(recipes, key=lambda r: r.rating or 0, reverse=True)

    @staticmethod
    def facets(recipes: Iterable[Recipe]) -> dict:
        categories: Counter[str] = Counter()
        difficulties: Counter[str] = Counter()
        tags: Counter[str] = Counter()
        for recipe in recipes:
            categories[recipe.category] += 1
            difficulties[recipe.difficulty] += 1
            tags.update(recipe.tag_names)

        def _order(name: str) -> int:
            return DIFFICULTIES.index(name) if name in DIFFICULTIES else len(DIFFICULTIES)

        return {
            "categories": _as_counts(categories.most_common()),
            "difficulties": _as_counts(
                sorted(difficulties.items(), key=lambda item: _order(item[0]))
            ),
            "tags": _as_counts(tags.most_common(FACET_TAG_LIMIT)),
        }

    def popular_tags(self, limit: int = 10) -> list[dict]:
        tags: Counter[str] = Counter()
        for recipe in self.recipes:
            tags.update(recipe.tag_names)
        return _as_counts(tags.most_common(limit))

    @staticmethod
    def suggested_searches() -> list[str]:
        return list(SUGGESTED_SEARCHES)


def _as_counts(pairs: Iterable[tuple[str, int]]) -> list[dict]:
    return [{"name": name, "count": count} for name, count in pairs]
