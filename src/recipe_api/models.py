"""Pydantic models for API request/response schemas"""

from datetime import datetime, timezone
from typing import Generic, Literal, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Difficulty = Literal["Easy", "Medium", "Hard"]
RecipeMealType = Literal["Breakfast", "Lunch", "Dinner", "Snack", "Dessert", "Appetizer", "Beverage", "Side Dish"]
PlanMealType = Literal["Breakfast", "Lunch", "Dinner", "Snack"]

T = TypeVar("T")


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _reject_explicit_nulls(model: BaseModel, nullable: set[str]) -> None:
    for name in model.model_fields_set:
        if name not in nullable and getattr(model, name) is None:
            raise ValueError(f"{to_camel(name)} cannot be null")


# Envelope
class Envelope(BaseModel, Generic[T]):
    """Uniform response wrapper"""

    success: bool = True
    message: str | None = None
    data: T | None = None
    error: str | None = None


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "Pagination":
        total_pages = -(-total // limit)
        return cls(
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


# Auth schemas
class UserRegister(CamelModel):
    """Registration request"""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=6)
    bio: str | None = Field(None, max_length=500)

    @field_validator("first_name", "last_name", "username", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def _valid_email(cls, value: str) -> str:
        # Stored exactly as typed; login and uniqueness compare the raw string
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(str(exc)) from None
        return value


class UserLogin(BaseModel):
    """Login request"""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str


class UserResponse(CamelModel):
    """User profile response"""

    id: str
    first_name: str
    last_name: str
    email: str
    username: str
    image: str | None = None
    bio: str | None = None
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(UserResponse):
    token: str


class RecipeSummary(CamelModel):
    """Recipe projection embedded in a user profile"""

    id: str
    name: str
    image: str
    rating: float
    cuisine: str


class UserProfileResponse(UserResponse):
    favorite_recipes: list[RecipeSummary] = []
    created_recipes: list[RecipeSummary] = []


class ProfileUpdate(CamelModel):
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    username: str | None = Field(None, max_length=50)
    image: str | None = Field(None, max_length=500)
    bio: str | None = Field(None, max_length=500)


class PasswordChange(CamelModel):
    current_password: str
    new_password: str


class FavoritesResponse(CamelModel):
    favorite_recipes: list[str]


# Recipe schemas
class OwnerSummary(CamelModel):
    """Public projection of a recipe's owner; never carries email or password"""

    id: str
    first_name: str
    last_name: str
    username: str
    image: str | None = None


class RecipeBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    ingredients: list[str] = Field(..., min_length=1)
    instructions: list[str] = Field(..., min_length=1)
    prep_time_minutes: int = Field(..., ge=0)
    cook_time_minutes: int = Field(..., ge=0)
    servings: int = Field(..., ge=1)
    difficulty: Difficulty
    cuisine: str = Field(..., min_length=1, max_length=100)
    calories_per_serving: float | None = Field(None, ge=0)
    tags: list[str] = []
    image: str = Field(..., min_length=1, max_length=500)
    rating: float = Field(0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    meal_type: list[RecipeMealType] = []


class RecipeCreate(RecipeBase):
    """Create recipe request"""

    @field_validator("name", "cuisine", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def _strip_tags(cls, value: list[str]) -> list[str]:
        return [tag.strip() for tag in value]


class RecipeUpdate(CamelModel):
    """Partial recipe update; omitted fields keep their stored value"""

    name: str | None = Field(None, min_length=1, max_length=200)
    ingredients: list[str] | None = Field(None, min_length=1)
    instructions: list[str] | None = Field(None, min_length=1)
    prep_time_minutes: int | None = Field(None, ge=0)
    cook_time_minutes: int | None = Field(None, ge=0)
    servings: int | None = Field(None, ge=1)
    difficulty: Difficulty | None = None
    cuisine: str | None = Field(None, min_length=1, max_length=100)
    calories_per_serving: float | None = Field(None, ge=0)
    tags: list[str] | None = None
    image: str | None = Field(None, min_length=1, max_length=500)
    rating: float | None = Field(None, ge=0, le=5)
    review_count: int | None = Field(None, ge=0)
    meal_type: list[RecipeMealType] | None = None

    @model_validator(mode="after")
    def _required_fields_stay_set(self):
        _reject_explicit_nulls(self, nullable={"calories_per_serving"})
        return self

    @field_validator("name", "cuisine", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def _strip_tags(cls, value: list[str] | None) -> list[str] | None:
        return [tag.strip() for tag in value] if value is not None else value


class RecipeResponse(RecipeBase):
    id: str
    owner_id: str
    owner: OwnerSummary | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("ingredients", "tags", "meal_type", mode="before")
    @classmethod
    def _as_list(cls, value):
        return list(value) if value is not None else []


class RecipePage(CamelModel):
    recipes: list[RecipeResponse]
    pagination: Pagination


# Meal plan schemas
class MealPlanItemIn(CamelModel):
    recipe: str
    meal_type: PlanMealType
    servings: int = Field(1, ge=1)


class MealPlanDayIn(CamelModel):
    day: datetime
    items: list[MealPlanItemIn] = []

    @field_validator("day")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)


class MealPlanCreate(CamelModel):
    """Create meal plan request"""

    name: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime
    meals: list[MealPlanDayIn] = []
    notes: str | None = Field(None, max_length=500)

    @field_validator("name", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_date", "end_date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)


class MealPlanUpdate(CamelModel):
    """Merge of provided top-level fields; `meals` replaces every day when given"""

    name: str | None = Field(None, min_length=1, max_length=100)
    start_date: datetime | None = None
    end_date: datetime | None = None
    meals: list[MealPlanDayIn] | None = None
    notes: str | None = Field(None, max_length=500)
    is_active: bool | None = None

    @model_validator(mode="after")
    def _required_fields_stay_set(self):
        _reject_explicit_nulls(self, nullable={"notes"})
        return self

    @field_validator("start_date", "end_date")
    @classmethod
    def _naive_utc(cls, value: datetime | None) -> datetime | None:
        return _to_naive_utc(value) if value is not None else None


class AddRecipeToPlan(CamelModel):
    day: datetime
    recipe_id: str
    meal_type: PlanMealType
    servings: int | None = Field(None, ge=1)

    @field_validator("day")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return _to_naive_utc(value)


class PlanRecipeBrief(CamelModel):
    """Recipe projection used in meal plan listings"""

    id: str
    name: str
    image: str
    prep_time_minutes: int
    cook_time_minutes: int


class PlanRecipeDetail(PlanRecipeBrief):
    """Recipe projection used when a single meal plan is opened"""

    ingredients: list[str]
    servings: int
    calories_per_serving: float | None = None

    @field_validator("ingredients", mode="before")
    @classmethod
    def _as_list(cls, value):
        return list(value) if value is not None else []


class MealPlanItemResponse(CamelModel):
    id: str
    recipe_id: str
    meal_type: str
    servings: int
    recipe: PlanRecipeBrief | None = None


class MealPlanDayResponse(CamelModel):
    id: str
    day: datetime
    items: list[MealPlanItemResponse]


class MealPlanResponse(CamelModel):
    id: str
    owner_id: str
    name: str
    start_date: datetime
    end_date: datetime
    notes: str | None = None
    is_active: bool
    meals: list[MealPlanDayResponse]
    created_at: datetime
    updated_at: datetime


class MealPlanDetailItem(MealPlanItemResponse):
    recipe: PlanRecipeDetail | None = None


class MealPlanDetailDay(MealPlanDayResponse):
    items: list[MealPlanDetailItem]


class MealPlanDetailResponse(MealPlanResponse):
    meals: list[MealPlanDetailDay]


class MealPlanPage(CamelModel):
    meal_plans: list[MealPlanResponse]
    pagination: Pagination
