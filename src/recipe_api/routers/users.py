"""Users router - profile, password and favorites management"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.auth import get_current_user
from recipe_api.database import User, get_db
from recipe_api.models import (
    Envelope,
    FavoritesResponse,
    PasswordChange,
    ProfileUpdate,
    RecipePage,
    RecipeResponse,
    RecipeSummary,
    UserProfileResponse,
    UserResponse,
)
from recipe_api.services import users as user_service

router = APIRouter()


async def profile_response(db: AsyncSession, user: User) -> UserProfileResponse:
    favorites, created = await user_service.get_profile_recipes(db, user)

    return UserProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        favorite_recipes=[RecipeSummary.model_validate(recipe) for recipe in favorites],
        created_recipes=[RecipeSummary.model_validate(recipe) for recipe in created],
    )


@router.get("/profile", response_model=Envelope[UserProfileResponse])
async def get_profile(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Get current user's profile"""
    return Envelope(data=await profile_response(db, current_user))


@router.put("/profile", response_model=Envelope[UserResponse])
async def update_profile(
    data: ProfileUpdate, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Update current user's profile"""
    user = await user_service.update_profile(db, current_user, data)
    return Envelope(message="Profile updated successfully", data=UserResponse.model_validate(user))


@router.put("/password", response_model=Envelope[None])
async def update_password(
    data: PasswordChange, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Change password after verifying the current one"""
    await user_service.change_password(db, current_user, data)
    return Envelope(message="Password updated successfully")


@router.delete("/profile", response_model=Envelope[None])
async def delete_account(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Delete the current account; owned recipes and meal plans are kept"""
    await user_service.delete_account(db, current_user)
    return Envelope(message="Account deleted successfully")


@router.get("/favorites", response_model=Envelope[RecipePage])
async def get_favorites(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get current user's favorite recipes, paginated"""
    recipes, pagination = await user_service.list_favorites(db, current_user, page, limit)
    return Envelope(
        data=RecipePage(recipes=[RecipeResponse.model_validate(r) for r in recipes], pagination=pagination)
    )


@router.post(
    "/favorites/{recipe_id}", response_model=Envelope[FavoritesResponse], status_code=status.HTTP_201_CREATED
)
async def add_favorite(recipe_id: str, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Add a recipe to favorites"""
    favorites = await user_service.add_favorite(db, current_user, recipe_id)
    return Envelope(message="Recipe added to favorites", data=FavoritesResponse(favorite_recipes=favorites))


@router.delete("/favorites/{recipe_id}", response_model=Envelope[FavoritesResponse])
async def remove_favorite(
    recipe_id: str, current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    """Remove a recipe from favorites"""
    favorites = await user_service.remove_favorite(db, current_user, recipe_id)
    return Envelope(message="Recipe removed from favorites", data=FavoritesResponse(favorite_recipes=favorites))
