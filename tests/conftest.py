"""
Shared fixtures for recipe-api tests.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from recipe_api.config import get_settings
from recipe_api.database import Database, User
from recipe_api.main import create_app

get_settings.cache_clear()


@pytest.fixture
def sample_recipe():
    """A valid recipe payload as a client would send it."""
    return {
        "name": "Classic Beef Tacos",
        "ingredients": ["1 lb ground beef", "8 hard taco shells", "1 cup shredded lettuce"],
        "instructions": ["Brown the beef.", "Fill the shells.", "Top and serve."],
        "prepTimeMinutes": 10,
        "cookTimeMinutes": 15,
        "servings": 4,
        "difficulty": "Easy",
        "cuisine": "Mexican",
        "caloriesPerServing": 380,
        "tags": ["mexican", "beef", "quick"],
        "image": "https://cdn.example.com/tacos.webp",
        "rating": 4.6,
        "reviewCount": 189,
        "mealType": ["Lunch", "Dinner"],
    }


@pytest.fixture
def make_recipe(sample_recipe):
    """Build a recipe payload with some fields overridden."""

    def _make(**overrides):
        return {**sample_recipe, **overrides}

    return _make


@pytest_asyncio.fixture
async def database():
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def client(database):
    # ASGITransport does not run the lifespan, so install the store directly
    app = create_app()
    app.state.database = database

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client):
    """Register a user and return (user, auth headers)."""

    async def _register(username="alice", email=None, password="secret1", first_name="Alice", last_name="Smith"):
        payload = {
            "firstName": first_name,
            "lastName": last_name,
            "email": email or f"{username}@example.com",
            "username": username,
            "password": password,
        }
        response = await client.post("/auth/register", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data, {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def make_admin(database):
    """Grant the admin role directly in the store."""

    async def _make_admin(user_id):
        async with database.session_maker() as s:
            user = await s.get(User, user_id)
            user.role = "admin"
            await s.commit()

    return _make_admin


@pytest.fixture
def create_recipe(client, make_recipe):
    """Create a recipe through the API and return its response data."""

    async def _create(headers, **overrides):
        response = await client.post("/recipes", json=make_recipe(**overrides), headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
