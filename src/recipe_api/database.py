"""Database models and session management"""

import os
import uuid
from datetime import datetime
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.engine import make_url
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import StaticPool

from recipe_api.exceptions import ConflictError


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """User account model"""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False)
    # Recipe ids; not foreign keys, entries may outlive the recipe they point at
    favorite_recipes: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    created_recipes: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class RecipeTag(Base):
    __tablename__ = "recipe_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[str] = mapped_column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[str] = mapped_column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)


class RecipeMealType(Base):
    __tablename__ = "recipe_meal_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[str] = mapped_column(String(36), ForeignKey("recipes.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    meal_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)


class Recipe(Base):
    """Recipe model; total time is always prep + cook and never stored"""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    instructions: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    prep_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    cook_time_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    servings: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False)
    cuisine: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    calories_per_serving: Mapped[float | None] = mapped_column(Float, nullable=True)
    image: Mapped[str] = mapped_column(String(500), nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    ingredient_rows: Mapped[list[RecipeIngredient]] = relationship(
        order_by=RecipeIngredient.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tag_rows: Mapped[list[RecipeTag]] = relationship(
        order_by=RecipeTag.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    meal_type_rows: Mapped[list[RecipeMealType]] = relationship(
        order_by=RecipeMealType.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    owner: Mapped[User | None] = relationship(
        primaryjoin="foreign(Recipe.owner_id) == User.id", viewonly=True, lazy="selectin"
    )

    ingredients: AssociationProxy[list[str]] = association_proxy(
        "ingredient_rows", "text", creator=lambda text: RecipeIngredient(text=text)
    )
    tags: AssociationProxy[list[str]] = association_proxy("tag_rows", "name", creator=lambda name: RecipeTag(name=name))
    meal_type: AssociationProxy[list[str]] = association_proxy(
        "meal_type_rows", "meal_type", creator=lambda value: RecipeMealType(meal_type=value)
    )


class MealPlanItem(Base):
    __tablename__ = "meal_plan_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    day_id: Mapped[str] = mapped_column(String(36), ForeignKey("meal_plan_days.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    recipe_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    meal_type: Mapped[str] = mapped_column(String(20), nullable=False)
    servings: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    recipe: Mapped[Recipe | None] = relationship(
        primaryjoin="foreign(MealPlanItem.recipe_id) == Recipe.id", viewonly=True, lazy="selectin"
    )


class MealPlanDay(Base):
    __tablename__ = "meal_plan_days"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    meal_plan_id: Mapped[str] = mapped_column(String(36), ForeignKey("meal_plans.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    items: Mapped[list[MealPlanItem]] = relationship(
        order_by=MealPlanItem.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class MealPlan(Base):
    """A user's meal plan: ordered days, each holding ordered items"""

    __tablename__ = "meal_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    meals: Mapped[list[MealPlanDay]] = relationship(
        order_by=MealPlanDay.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


def contains_ci(column, text: str):
    """Case-insensitive substring predicate; `text` is matched literally"""
    return func.lower(column).contains(text.lower(), autoescape=True)


async def commit_or_conflict(db: AsyncSession, what: str) -> None:
    """Commit, turning a lost optimistic-concurrency race into a ConflictError"""
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise ConflictError(f"{what} was modified by another request, please retry")


class Database:
    """Store handle owning the engine and session factory for the process lifetime"""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {}
        if url.startswith("sqlite") and ":memory:" in url:
            engine_kwargs["poolclass"] = StaticPool
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_maker = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def create_all(self) -> None:
        """Create the sqlite data directory if needed, then all tables"""
        parsed = make_url(self.url)
        if parsed.get_backend_name() == "sqlite" and parsed.database and parsed.database != ":memory:":
            directory = os.path.dirname(parsed.database)
            if directory:
                os.makedirs(directory, exist_ok=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency"""
    database: Database = request.app.state.database

    async with database.session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
