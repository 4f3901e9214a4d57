"""Seed the database with a default user and sample recipes.

Usage:
    python -m recipe_api.seed [--reset] [--promote EMAIL]
"""

import argparse
import asyncio
import logging
from pathlib import Path

import yaml
from sqlalchemy import func, select

from recipe_api.auth import hash_password
from recipe_api.config import configure_logging, get_settings
from recipe_api.database import Database, Recipe, User
from recipe_api.exceptions import NotFoundError
from recipe_api.models import RecipeCreate

logger = logging.getLogger("recipe-api")

SEED_DATA_PATH = Path(__file__).with_name("seed_data.yaml")


def load_seed_data(path: Path = SEED_DATA_PATH) -> dict:
    """Load seed data from YAML; every recipe is validated like an API payload"""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    data["recipes"] = [RecipeCreate.model_validate(recipe) for recipe in data.get("recipes", [])]
    return data


async def seed(database: Database, data: dict, reset: bool = False) -> int:
    """Insert the default user and recipes. Returns the number of recipes created."""
    if reset:
        logger.info({"message": "Clearing existing data"})
        await database.drop_all()
    await database.create_all()

    async with database.session_maker() as session:
        existing = await session.scalar(select(func.count()).select_from(Recipe))
        if existing:
            logger.info({"message": "Recipes already present, skipping seed", "count": existing})
            return 0

        profile = dict(data["default_user"])
        result = await session.execute(select(User).where(User.email == profile["email"]))
        user = result.scalar_one_or_none()

        if user is None:
            password = profile.pop("password")
            user = User(
                **profile,
                password_hash=hash_password(password),
                favorite_recipes=[],
                created_recipes=[],
            )
            session.add(user)
            await session.flush()
            logger.info({"message": "Default user created", "email": user.email})

        recipes = []
        for item in data["recipes"]:
            recipe = Recipe(owner_id=user.id, **item.model_dump(exclude={"ingredients", "tags", "meal_type"}))
            recipe.ingredients = list(item.ingredients)
            recipe.tags = list(item.tags)
            recipe.meal_type = list(item.meal_type)
            session.add(recipe)
            recipes.append(recipe)
        await session.flush()

        user.created_recipes = [*user.created_recipes, *(recipe.id for recipe in recipes)]
        await session.commit()

    logger.info({"message": "Database seeded", "recipes": len(recipes)})
    return len(recipes)


async def promote(database: Database, email: str) -> None:
    """Grant the admin role to an existing user"""
    async with database.session_maker() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(f"User not found: {email}")

        user.role = "admin"
        await session.commit()

    logger.info({"message": "User promoted to admin", "email": email})


async def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the recipe database")
    parser.add_argument("--reset", action="store_true", help="drop all tables before seeding")
    parser.add_argument("--promote", metavar="EMAIL", help="grant the admin role to this user and exit")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)
    database = Database(settings.database_url)

    try:
        if args.promote:
            await database.create_all()
            await promote(database, args.promote)
            return

        data = load_seed_data()
        await seed(database, data, reset=args.reset)

        user = data["default_user"]
        print("\nDefault user credentials:")
        print(f"  Email:    {user['email']}")
        print(f"  Password: {user['password']}")
        print(f"  Username: {user['username']}\n")
    finally:
        await database.dispose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
