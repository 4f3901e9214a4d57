"""Recipe query engine and recipe writes"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.database import (
    Recipe,
    RecipeIngredient,
    RecipeMealType,
    RecipeTag,
    User,
    commit_or_conflict,
    contains_ci,
)
from recipe_api.exceptions import ValidationError
from recipe_api.models import Pagination, RecipeCreate, RecipeUpdate
from recipe_api.services.access import get_recipe_for_update, get_recipe_or_404

logger = logging.getLogger("recipe-api")

# API field name -> column accepted in sortBy
SORTABLE_FIELDS = {
    "name": Recipe.name,
    "prepTimeMinutes": Recipe.prep_time_minutes,
    "cookTimeMinutes": Recipe.cook_time_minutes,
    "servings": Recipe.servings,
    "difficulty": Recipe.difficulty,
    "cuisine": Recipe.cuisine,
    "caloriesPerServing": Recipe.calories_per_serving,
    "rating": Recipe.rating,
    "reviewCount": Recipe.review_count,
    "createdAt": Recipe.created_at,
    "updatedAt": Recipe.updated_at,
}


@dataclass
class RecipeFilters:
    """Optional filters for the recipe listing; unset filters match everything"""

    search: str | None = None
    cuisine: str | None = None
    difficulty: str | None = None
    meal_type: str | None = None
    tag: str | None = None
    max_prep_time: int | None = None
    max_cook_time: int | None = None
    max_total_time: int | None = None
    max_calories: int | None = None


def _has_tag_containing(text: str):
    return Recipe.tag_rows.any(contains_ci(RecipeTag.name, text))


def _has_ingredient_containing(text: str):
    return Recipe.ingredient_rows.any(contains_ci(RecipeIngredient.text, text))


def _has_meal_type(meal_type: str):
    return Recipe.meal_type_rows.any(RecipeMealType.meal_type == meal_type)


def build_conditions(filters: RecipeFilters) -> list:
    """Translate filters into WHERE clauses, all ANDed together"""
    conditions = []

    if filters.cuisine:
        conditions.append(contains_ci(Recipe.cuisine, filters.cuisine))

    if filters.difficulty:
        conditions.append(Recipe.difficulty == filters.difficulty)

    if filters.meal_type:
        conditions.append(_has_meal_type(filters.meal_type))

    if filters.tag:
        conditions.append(_has_tag_containing(filters.tag))

    if filters.max_prep_time is not None:
        conditions.append(Recipe.prep_time_minutes <= filters.max_prep_time)

    if filters.max_cook_time is not None:
        conditions.append(Recipe.cook_time_minutes <= filters.max_cook_time)

    # Total time is not a column; compare the sum inside the query
    if filters.max_total_time is not None:
        conditions.append((Recipe.prep_time_minutes + Recipe.cook_time_minutes) <= filters.max_total_time)

    if filters.max_calories is not None:
        conditions.append(Recipe.calories_per_serving <= filters.max_calories)

    if filters.search:
        conditions.append(or_(contains_ci(Recipe.name, filters.search), _has_tag_containing(filters.search)))

    return conditions


def parse_sort(sort_by: str | None) -> list:
    """Parse "field,-field" into ORDER BY clauses; unknown fields are skipped"""
    if not sort_by:
        return [Recipe.created_at.desc()]

    clauses = []
    for raw in sort_by.split(","):
        field = raw.strip()
        descending = field.startswith("-")
        if descending:
            field = field[1:]

        column = SORTABLE_FIELDS.get(field)
        if column is None:
            logger.debug({"message": "Ignoring unknown sort field", "field": field})
            continue
        clauses.append(column.desc() if descending else column.asc())

    return clauses or [Recipe.created_at.desc()]


async def _paginate(
    db: AsyncSession, conditions: list, order_by: list, page: int, limit: int
) -> tuple[list[Recipe], Pagination]:
    query = (
        select(Recipe)
        .where(*conditions)
        .order_by(*order_by, Recipe.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)
    recipes = list(result.scalars().all())

    total = await db.scalar(select(func.count()).select_from(Recipe).where(*conditions))

    return recipes, Pagination.build(total or 0, page, limit)


async def query_recipes(
    db: AsyncSession, filters: RecipeFilters, sort_by: str | None = None, page: int = 1, limit: int = 10
) -> tuple[list[Recipe], Pagination]:
    """Filter, sort and paginate recipes"""
    return await _paginate(db, build_conditions(filters), parse_sort(sort_by), page, limit)


async def recipes_by_cuisine(
    db: AsyncSession, cuisine: str, page: int = 1, limit: int = 10
) -> tuple[list[Recipe], Pagination]:
    conditions = [contains_ci(Recipe.cuisine, cuisine)]
    return await _paginate(db, conditions, [Recipe.rating.desc(), Recipe.created_at.desc()], page, limit)


async def recipes_by_meal_type(
    db: AsyncSession, meal_type: str, page: int = 1, limit: int = 10
) -> tuple[list[Recipe], Pagination]:
    conditions = [_has_meal_type(meal_type)]
    return await _paginate(db, conditions, [Recipe.rating.desc(), Recipe.created_at.desc()], page, limit)


async def search_recipes(
    db: AsyncSession, q: str | None, page: int = 1, limit: int = 10
) -> tuple[list[Recipe], Pagination]:
    """Free-text search over name, cuisine, tags and ingredients"""
    if not q or not q.strip():
        raise ValidationError("Search query is required")

    condition = or_(
        contains_ci(Recipe.name, q),
        contains_ci(Recipe.cuisine, q),
        _has_tag_containing(q),
        _has_ingredient_containing(q),
    )
    return await _paginate(db, [condition], [Recipe.rating.desc(), Recipe.created_at.desc()], page, limit)


async def list_cuisines(db: AsyncSession) -> list[str]:
    result = await db.execute(select(Recipe.cuisine).distinct().order_by(Recipe.cuisine))
    return list(result.scalars().all())


async def list_tags(db: AsyncSession) -> list[str]:
    result = await db.execute(select(RecipeTag.name).distinct().order_by(RecipeTag.name))
    return list(result.scalars().all())


async def load_recipe(db: AsyncSession, recipe_id: str) -> Recipe:
    """Load a recipe with every relationship freshly populated"""
    result = await db.execute(
        select(Recipe).where(Recipe.id == recipe_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_recipe(db: AsyncSession, recipe_id: str) -> Recipe:
    return await get_recipe_or_404(db, recipe_id)


async def resolve_recipes(db: AsyncSession, recipe_ids: list[str]) -> list[Recipe]:
    """Resolve ids to recipes in the given order, dropping ids that no longer exist"""
    if not recipe_ids:
        return []

    result = await db.execute(select(Recipe).where(Recipe.id.in_(recipe_ids)))
    by_id = {recipe.id: recipe for recipe in result.scalars().all()}
    return [by_id[recipe_id] for recipe_id in recipe_ids if recipe_id in by_id]


async def create_recipe(db: AsyncSession, user: User, data: RecipeCreate) -> Recipe:
    """Create a recipe owned by the user and record it in their created list"""
    recipe = Recipe(owner_id=user.id, **data.model_dump(exclude={"ingredients", "tags", "meal_type"}))
    recipe.ingredients = list(data.ingredients)
    recipe.tags = list(data.tags)
    recipe.meal_type = list(data.meal_type)
    db.add(recipe)
    await db.flush()

    user.created_recipes = [*user.created_recipes, recipe.id]
    await commit_or_conflict(db, "User")

    logger.info({"message": "Recipe created", "recipe_id": recipe.id, "user_id": user.id})
    return await load_recipe(db, recipe.id)


async def update_recipe(db: AsyncSession, recipe_id: str, user: User, data: RecipeUpdate) -> Recipe:
    """Merge the provided fields into a recipe the user owns (or any recipe, for admins)"""
    recipe = await get_recipe_for_update(db, recipe_id, user, "update")

    # List fields are association proxies, so assignment replaces the child rows in order
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(recipe, key, value)

    recipe.updated_at = datetime.utcnow()
    await db.commit()

    logger.info({"message": "Recipe updated", "recipe_id": recipe_id, "fields": sorted(data.model_fields_set)})
    return await load_recipe(db, recipe_id)


async def delete_recipe(db: AsyncSession, recipe_id: str, user: User) -> None:
    """Delete a recipe. Favorites and meal plan items that point at it are left in place."""
    recipe = await get_recipe_for_update(db, recipe_id, user, "delete")
    owner = recipe.owner

    await db.delete(recipe)

    if owner is not None and recipe_id in owner.created_recipes:
        owner.created_recipes = [rid for rid in owner.created_recipes if rid != recipe_id]

    await commit_or_conflict(db, "User")
    logger.info({"message": "Recipe deleted", "recipe_id": recipe_id, "user_id": user.id})
