"""Meal plan management: plans own ordered days, days own ordered items"""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.database import MealPlan, MealPlanDay, MealPlanItem, Recipe, User, commit_or_conflict
from recipe_api.exceptions import NotFoundError, ValidationError
from recipe_api.models import AddRecipeToPlan, MealPlanCreate, MealPlanDayIn, MealPlanUpdate, Pagination
from recipe_api.services.access import get_meal_plan_for_owner, get_recipe_or_404

logger = logging.getLogger("recipe-api")


def _build_days(meals: list[MealPlanDayIn]) -> list[MealPlanDay]:
    return [
        MealPlanDay(
            day=entry.day,
            items=[
                MealPlanItem(recipe_id=item.recipe, meal_type=item.meal_type, servings=item.servings)
                for item in entry.items
            ],
        )
        for entry in meals
    ]


async def _ensure_recipes_exist(db: AsyncSession, meals: list[MealPlanDayIn]) -> None:
    """Fail on the first referenced recipe that does not exist"""
    referenced = [item.recipe for entry in meals for item in entry.items]
    if not referenced:
        return

    result = await db.execute(select(Recipe.id).where(Recipe.id.in_(referenced)))
    existing = set(result.scalars().all())

    for recipe_id in referenced:
        if recipe_id not in existing:
            raise NotFoundError(f"Recipe not found: {recipe_id}")


async def load_meal_plan(db: AsyncSession, plan_id: str) -> MealPlan:
    """Load a plan with days, items and item recipes freshly populated"""
    result = await db.execute(
        select(MealPlan).where(MealPlan.id == plan_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def create_meal_plan(db: AsyncSession, user: User, data: MealPlanCreate) -> MealPlan:
    """Create a plan; every referenced recipe is checked before anything is written"""
    if data.start_date > data.end_date:
        raise ValidationError("Start date must be before end date")

    await _ensure_recipes_exist(db, data.meals)

    plan = MealPlan(
        owner_id=user.id,
        name=data.name,
        start_date=data.start_date,
        end_date=data.end_date,
        notes=data.notes,
        is_active=True,
        meals=_build_days(data.meals),
    )
    db.add(plan)
    await db.commit()

    logger.info({"message": "Meal plan created", "meal_plan_id": plan.id, "user_id": user.id})
    return await load_meal_plan(db, plan.id)


async def list_meal_plans(
    db: AsyncSession, user: User, page: int = 1, limit: int = 10, active_only: bool = False
) -> tuple[list[MealPlan], Pagination]:
    conditions = [MealPlan.owner_id == user.id]
    if active_only:
        conditions.append(MealPlan.is_active.is_(True))

    result = await db.execute(
        select(MealPlan)
        .where(*conditions)
        .order_by(MealPlan.start_date.desc(), MealPlan.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    plans = list(result.scalars().all())

    total = await db.scalar(select(func.count()).select_from(MealPlan).where(*conditions))
    return plans, Pagination.build(total or 0, page, limit)


async def get_meal_plan(db: AsyncSession, plan_id: str, user: User) -> MealPlan:
    return await get_meal_plan_for_owner(db, plan_id, user, "access")


async def update_meal_plan(db: AsyncSession, plan_id: str, user: User, data: MealPlanUpdate) -> MealPlan:
    """Merge provided fields. A provided `meals` replaces every day wholesale."""
    plan = await get_meal_plan_for_owner(db, plan_id, user, "update")

    changes = data.model_dump(exclude_unset=True, exclude={"meals"})
    for key, value in changes.items():
        setattr(plan, key, value)

    if data.meals is not None:
        plan.meals = _build_days(data.meals)

    plan.updated_at = datetime.utcnow()
    await commit_or_conflict(db, "Meal plan")

    logger.info({"message": "Meal plan updated", "meal_plan_id": plan_id, "fields": sorted(data.model_fields_set)})
    return await load_meal_plan(db, plan_id)


async def delete_meal_plan(db: AsyncSession, plan_id: str, user: User) -> None:
    plan = await get_meal_plan_for_owner(db, plan_id, user, "delete")
    await db.delete(plan)
    await commit_or_conflict(db, "Meal plan")
    logger.info({"message": "Meal plan deleted", "meal_plan_id": plan_id, "user_id": user.id})


async def add_recipe_to_plan(db: AsyncSession, plan_id: str, user: User, data: AddRecipeToPlan) -> MealPlan:
    """Append an item to the day bucket for the given calendar date, creating the bucket if needed"""
    plan = await get_meal_plan_for_owner(db, plan_id, user, "modify")
    await get_recipe_or_404(db, data.recipe_id)

    target_date = data.day.date()
    day_entry = next((entry for entry in plan.meals if entry.day.date() == target_date), None)

    if day_entry is None:
        day_entry = MealPlanDay(day=data.day, items=[])
        plan.meals.append(day_entry)

    day_entry.items.append(
        MealPlanItem(recipe_id=data.recipe_id, meal_type=data.meal_type, servings=data.servings or 1)
    )

    plan.updated_at = datetime.utcnow()
    await commit_or_conflict(db, "Meal plan")

    logger.info({"message": "Recipe added to meal plan", "meal_plan_id": plan_id, "recipe_id": data.recipe_id})
    return await load_meal_plan(db, plan_id)
