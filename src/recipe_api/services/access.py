"""Ownership checks applied before recipe and meal plan mutations.

Lookup comes first, so a missing entity is reported as not found even when the
caller would not have been allowed to touch it.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.database import MealPlan, Recipe, User
from recipe_api.exceptions import ForbiddenError, NotFoundError

logger = logging.getLogger("recipe-api")


async def get_recipe_or_404(db: AsyncSession, recipe_id: str) -> Recipe:
    result = await db.execute(select(Recipe).where(Recipe.id == recipe_id))
    recipe = result.scalar_one_or_none()
    if recipe is None:
        raise NotFoundError("Recipe not found")
    return recipe


async def get_meal_plan_or_404(db: AsyncSession, plan_id: str) -> MealPlan:
    result = await db.execute(select(MealPlan).where(MealPlan.id == plan_id))
    plan = result.scalar_one_or_none()
    if plan is None:
        raise NotFoundError("Meal plan not found")
    return plan


async def get_recipe_for_update(db: AsyncSession, recipe_id: str, user: User, action: str = "update") -> Recipe:
    """Fetch a recipe the user may mutate: owners and admins only"""
    recipe = await get_recipe_or_404(db, recipe_id)

    if recipe.owner_id != user.id and not user.is_admin:
        logger.warning({"message": "Recipe access denied", "recipe_id": recipe_id, "user_id": user.id})
        raise ForbiddenError(f"Not authorized to {action} this recipe")

    return recipe


async def get_meal_plan_for_owner(db: AsyncSession, plan_id: str, user: User, action: str = "access") -> MealPlan:
    """Fetch a meal plan owned by the user; admins get no override here"""
    plan = await get_meal_plan_or_404(db, plan_id)

    if plan.owner_id != user.id:
        logger.warning({"message": "Meal plan access denied", "meal_plan_id": plan_id, "user_id": user.id})
        raise ForbiddenError(f"Not authorized to {action} this meal plan")

    return plan
