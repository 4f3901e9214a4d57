"""Meal plans router - every route is owner-only"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.auth import get_current_user
from recipe_api.database import User, get_db
from recipe_api.models import (
    AddRecipeToPlan,
    Envelope,
    MealPlanCreate,
    MealPlanDetailResponse,
    MealPlanPage,
    MealPlanResponse,
    MealPlanUpdate,
)
from recipe_api.services import meal_plans as meal_plan_service

router = APIRouter()


@router.post("", response_model=Envelope[MealPlanResponse], status_code=status.HTTP_201_CREATED)
async def create_meal_plan(
    data: MealPlanCreate, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    plan = await meal_plan_service.create_meal_plan(db, current_user, data)
    return Envelope(message="Meal plan created successfully", data=MealPlanResponse.model_validate(plan))


@router.get("", response_model=Envelope[MealPlanPage])
async def list_meal_plans(
    active: bool = False,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's meal plans, newest start date first"""
    plans, pagination = await meal_plan_service.list_meal_plans(db, current_user, page, limit, active_only=active)
    return Envelope(
        data=MealPlanPage(meal_plans=[MealPlanResponse.model_validate(p) for p in plans], pagination=pagination)
    )


@router.get("/{plan_id}", response_model=Envelope[MealPlanDetailResponse])
async def get_meal_plan(plan_id: str, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    plan = await meal_plan_service.get_meal_plan(db, plan_id, current_user)
    return Envelope(data=MealPlanDetailResponse.model_validate(plan))


@router.put("/{plan_id}", response_model=Envelope[MealPlanResponse])
async def update_meal_plan(
    plan_id: str,
    data: MealPlanUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a meal plan; a `meals` array replaces all existing days"""
    plan = await meal_plan_service.update_meal_plan(db, plan_id, current_user, data)
    return Envelope(message="Meal plan updated successfully", data=MealPlanResponse.model_validate(plan))


@router.delete("/{plan_id}", response_model=Envelope[None])
async def delete_meal_plan(plan_id: str, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await meal_plan_service.delete_meal_plan(db, plan_id, current_user)
    return Envelope(message="Meal plan deleted successfully")


@router.post("/{plan_id}/recipes", response_model=Envelope[MealPlanResponse])
async def add_recipe_to_meal_plan(
    plan_id: str,
    data: AddRecipeToPlan,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Add a recipe to the plan's bucket for the given day"""
    plan = await meal_plan_service.add_recipe_to_plan(db, plan_id, current_user, data)
    return Envelope(message="Recipe added to meal plan", data=MealPlanResponse.model_validate(plan))
