"""Recipes router - browsing, filtering, search and owner-gated writes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.auth import get_current_user
from recipe_api.database import Recipe, User, get_db
from recipe_api.models import Envelope, Pagination, RecipeCreate, RecipePage, RecipeResponse, RecipeUpdate
from recipe_api.services import recipes as recipe_service
from recipe_api.services.recipes import RecipeFilters

router = APIRouter()


def recipe_page(recipes: list[Recipe], pagination: Pagination) -> RecipePage:
    return RecipePage(recipes=[RecipeResponse.model_validate(recipe) for recipe in recipes], pagination=pagination)


@router.get("", response_model=Envelope[RecipePage])
async def list_recipes(
    search: str | None = None,
    cuisine: str | None = None,
    difficulty: str | None = None,
    meal_type: str | None = Query(None, alias="mealType"),
    tag: str | None = None,
    max_prep_time: int | None = Query(None, alias="maxPrepTime"),
    max_cook_time: int | None = Query(None, alias="maxCookTime"),
    max_total_time: int | None = Query(None, alias="maxTotalTime"),
    max_calories: int | None = Query(None, alias="maxCalories"),
    sort_by: str | None = Query(None, alias="sortBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List recipes with filtering, sorting and pagination"""
    filters = RecipeFilters(
        search=search,
        cuisine=cuisine,
        difficulty=difficulty,
        meal_type=meal_type,
        tag=tag,
        max_prep_time=max_prep_time,
        max_cook_time=max_cook_time,
        max_total_time=max_total_time,
        max_calories=max_calories,
    )
    recipes, pagination = await recipe_service.query_recipes(db, filters, sort_by, page, limit)
    return Envelope(data=recipe_page(recipes, pagination))


@router.get("/cuisines", response_model=Envelope[list[str]])
async def get_cuisines(db: AsyncSession = Depends(get_db)):
    """All distinct cuisines"""
    return Envelope(data=await recipe_service.list_cuisines(db))


@router.get("/tags", response_model=Envelope[list[str]])
async def get_tags(db: AsyncSession = Depends(get_db)):
    """All distinct tags"""
    return Envelope(data=await recipe_service.list_tags(db))


@router.get("/search", response_model=Envelope[RecipePage])
async def search_recipes(
    q: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Search recipes by name, cuisine, tag or ingredient"""
    recipes, pagination = await recipe_service.search_recipes(db, q, page, limit)
    return Envelope(data=recipe_page(recipes, pagination))


@router.get("/cuisine/{cuisine}", response_model=Envelope[RecipePage])
async def get_recipes_by_cuisine(
    cuisine: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    recipes, pagination = await recipe_service.recipes_by_cuisine(db, cuisine, page, limit)
    return Envelope(data=recipe_page(recipes, pagination))


@router.get("/meal/{meal_type}", response_model=Envelope[RecipePage])
async def get_recipes_by_meal_type(
    meal_type: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    recipes, pagination = await recipe_service.recipes_by_meal_type(db, meal_type, page, limit)
    return Envelope(data=recipe_page(recipes, pagination))


@router.get("/{recipe_id}", response_model=Envelope[RecipeResponse])
async def get_recipe(recipe_id: str, db: AsyncSession = Depends(get_db)):
    recipe = await recipe_service.get_recipe(db, recipe_id)
    return Envelope(data=RecipeResponse.model_validate(recipe))


@router.post("", response_model=Envelope[RecipeResponse], status_code=status.HTTP_201_CREATED)
async def create_recipe(
    data: RecipeCreate, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    recipe = await recipe_service.create_recipe(db, current_user, data)
    return Envelope(message="Recipe created successfully", data=RecipeResponse.model_validate(recipe))


@router.put("/{recipe_id}", response_model=Envelope[RecipeResponse])
async def update_recipe(
    recipe_id: str,
    data: RecipeUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update a recipe (owner or admin)"""
    recipe = await recipe_service.update_recipe(db, recipe_id, current_user, data)
    return Envelope(message="Recipe updated successfully", data=RecipeResponse.model_validate(recipe))


@router.delete("/{recipe_id}", response_model=Envelope[None])
async def delete_recipe(recipe_id: str, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Delete a recipe (owner or admin)"""
    await recipe_service.delete_recipe(db, recipe_id, current_user)
    return Envelope(message="Recipe deleted successfully")
