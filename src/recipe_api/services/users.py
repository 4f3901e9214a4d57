"""Favorites and profile management"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.auth import hash_password, verify_password
from recipe_api.database import Recipe, User, commit_or_conflict
from recipe_api.exceptions import ConflictError, UnauthorizedError, ValidationError
from recipe_api.models import Pagination, PasswordChange, ProfileUpdate, UserRegister
from recipe_api.services.access import get_recipe_or_404
from recipe_api.services.recipes import resolve_recipes

logger = logging.getLogger("recipe-api")

MIN_PASSWORD_LENGTH = 6


async def register_user(db: AsyncSession, data: UserRegister) -> User:
    """Create an account; email and username must both be unused"""
    result = await db.execute(select(User).where(User.email == data.email))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("User with this email already exists")

    result = await db.execute(select(User).where(User.username == data.username))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Username is already taken")

    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        username=data.username,
        password_hash=hash_password(data.password),
        bio=data.bio,
        role="user",
        favorite_recipes=[],
        created_recipes=[],
    )
    db.add(user)

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent registration won the race for the email or username
        await db.rollback()
        raise ConflictError("User with this email or username already exists")

    logger.info({"message": "User registered", "user_id": user.id, "username": user.username})
    return user


async def get_profile_recipes(db: AsyncSession, user: User) -> tuple[list[Recipe], list[Recipe]]:
    """Resolve the user's favorite and created recipe ids, skipping dangling ones"""
    favorites = await resolve_recipes(db, user.favorite_recipes)
    created = await resolve_recipes(db, user.created_recipes)
    return favorites, created


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    """Apply profile changes.

    Names and username change only when given a non-empty value. Image and bio
    change whenever the key is present, so an empty string clears them.
    """
    if data.username and data.username != user.username:
        result = await db.execute(select(User).where(User.username == data.username))
        if result.scalar_one_or_none() is not None:
            raise ConflictError("Username is already taken")

    if data.first_name:
        user.first_name = data.first_name
    if data.last_name:
        user.last_name = data.last_name
    if data.username:
        user.username = data.username
    if "image" in data.model_fields_set:
        user.image = data.image
    if "bio" in data.model_fields_set:
        user.bio = data.bio

    try:
        await commit_or_conflict(db, "User")
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Username is already taken")

    logger.info({"message": "Profile updated", "user_id": user.id})
    return user


async def change_password(db: AsyncSession, user: User, data: PasswordChange) -> None:
    if not data.current_password or not data.new_password:
        raise ValidationError("Please provide current password and new password")

    if len(data.new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

    if not verify_password(data.current_password, user.password_hash):
        logger.warning({"message": "Password change rejected", "user_id": user.id})
        raise UnauthorizedError("Current password is incorrect")

    user.password_hash = hash_password(data.new_password)
    await commit_or_conflict(db, "User")
    logger.info({"message": "Password changed", "user_id": user.id})


async def delete_account(db: AsyncSession, user: User) -> None:
    """Delete the user row only; their recipes and meal plans keep the old owner id"""
    await db.delete(user)
    await commit_or_conflict(db, "User")
    logger.info({"message": "Account deleted", "user_id": user.id})


async def add_favorite(db: AsyncSession, user: User, recipe_id: str) -> list[str]:
    await get_recipe_or_404(db, recipe_id)

    if recipe_id in user.favorite_recipes:
        raise ConflictError("Recipe already in favorites")

    user.favorite_recipes = [*user.favorite_recipes, recipe_id]
    await commit_or_conflict(db, "User")

    logger.info({"message": "Favorite added", "user_id": user.id, "recipe_id": recipe_id})
    return list(user.favorite_recipes)


async def remove_favorite(db: AsyncSession, user: User, recipe_id: str) -> list[str]:
    if recipe_id not in user.favorite_recipes:
        raise ConflictError("Recipe not in favorites")

    user.favorite_recipes = [rid for rid in user.favorite_recipes if rid != recipe_id]
    await commit_or_conflict(db, "User")

    logger.info({"message": "Favorite removed", "user_id": user.id, "recipe_id": recipe_id})
    return list(user.favorite_recipes)


async def list_favorites(db: AsyncSession, user: User, page: int = 1, limit: int = 10) -> tuple[list[Recipe], Pagination]:
    """Page through favorites; the total counts every stored id, dangling or not"""
    favorite_ids = list(user.favorite_recipes)
    start = (page - 1) * limit
    recipes = await resolve_recipes(db, favorite_ids[start : start + limit])
    return recipes, Pagination.build(len(favorite_ids), page, limit)
