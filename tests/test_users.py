"""
API tests for profile, password and favorites management.
"""

import pytest


class TestProfile:
    """Tests for /users/profile."""

    @pytest.mark.asyncio
    async def test_get_profile(self, client, register):
        """Test that the profile hides credentials and resolves recipe lists."""
        user, headers = await register(username="alice")

        response = await client.get("/users/profile", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == user["id"]
        assert data["username"] == "alice"
        assert data["favoriteRecipes"] == []
        assert data["createdRecipes"] == []
        assert "password" not in data
        assert "passwordHash" not in data

    @pytest.mark.asyncio
    async def test_update_profile(self, client, register):
        """Test that provided fields change and empty names are ignored."""
        _, headers = await register(username="alice")

        response = await client.put(
            "/users/profile",
            json={"firstName": "", "lastName": "Jones", "bio": "Loves soup", "image": "https://img.example.com/a.png"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Profile updated successfully"
        data = response.json()["data"]
        assert data["firstName"] == "Alice"
        assert data["lastName"] == "Jones"
        assert data["bio"] == "Loves soup"
        assert data["image"] == "https://img.example.com/a.png"

    @pytest.mark.asyncio
    async def test_clear_bio(self, client, register):
        """Test that an empty bio clears it."""
        _, headers = await register(username="alice")
        await client.put("/users/profile", json={"bio": "Something"}, headers=headers)

        response = await client.put("/users/profile", json={"bio": ""}, headers=headers)

        assert response.json()["data"]["bio"] == ""

    @pytest.mark.asyncio
    async def test_username_taken(self, client, register):
        """Test that changing to another user's username is a conflict."""
        await register(username="bob")
        _, headers = await register(username="alice")

        response = await client.put("/users/profile", json={"username": "bob"}, headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Username is already taken"

    @pytest.mark.asyncio
    async def test_delete_account(self, client, register):
        """Test that a deleted account can no longer log in."""
        _, headers = await register(username="alice")

        response = await client.delete("/users/profile", headers=headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Account deleted successfully"
        login = await client.post("/auth/login", json={"email": "alice@example.com", "password": "secret1"})
        assert login.status_code == 401

    @pytest.mark.asyncio
    async def test_deleted_owner_keeps_meal_plans_and_recipes(self, client, register, create_recipe):
        """Test that account deletion leaves owned recipes readable."""
        _, headers = await register(username="alice")
        recipe = await create_recipe(headers)

        await client.delete("/users/profile", headers=headers)

        listing = await client.get("/recipes")
        assert [r["id"] for r in listing.json()["data"]["recipes"]] == [recipe["id"]]


class TestPassword:
    """Tests for PUT /users/password."""

    @pytest.mark.asyncio
    async def test_change_password(self, client, register):
        """Test that the new password works and the old one does not."""
        _, headers = await register(username="alice", password="secret1")

        response = await client.put(
            "/users/password", json={"currentPassword": "secret1", "newPassword": "secret2"}, headers=headers
        )

        assert response.status_code == 200
        old = await client.post("/auth/login", json={"email": "alice@example.com", "password": "secret1"})
        new = await client.post("/auth/login", json={"email": "alice@example.com", "password": "secret2"})
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client, register):
        """Test that the current password must match."""
        _, headers = await register(username="alice")

        response = await client.put(
            "/users/password", json={"currentPassword": "nope-nope", "newPassword": "secret2"}, headers=headers
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_short_new_password(self, client, register):
        """Test that the new password needs six characters."""
        _, headers = await register(username="alice")

        response = await client.put(
            "/users/password", json={"currentPassword": "secret1", "newPassword": "abc"}, headers=headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_fields(self, client, register):
        """Test that both passwords are required."""
        _, headers = await register(username="alice")

        response = await client.put("/users/password", json={"currentPassword": "", "newPassword": ""}, headers=headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Please provide current password and new password"


class TestFavorites:
    """Tests for /users/favorites."""

    @pytest.mark.asyncio
    async def test_add_twice(self, client, register, create_recipe):
        """Test that the second add of the same recipe is rejected."""
        _, headers = await register(username="alice")
        recipe = await create_recipe(headers)

        first = await client.post(f"/users/favorites/{recipe['id']}", headers=headers)
        second = await client.post(f"/users/favorites/{recipe['id']}", headers=headers)

        assert first.status_code == 201
        assert first.json()["data"]["favoriteRecipes"] == [recipe["id"]]
        assert second.status_code == 400
        assert second.json()["message"] == "Recipe already in favorites"

    @pytest.mark.asyncio
    async def test_add_missing_recipe(self, client, register):
        """Test that favoriting an unknown recipe is a 404."""
        _, headers = await register(username="alice")

        response = await client.post("/users/favorites/nope", headers=headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_remove(self, client, register, create_recipe):
        """Test removing a favorite, then removing it again."""
        _, headers = await register(username="alice")
        recipe = await create_recipe(headers)
        await client.post(f"/users/favorites/{recipe['id']}", headers=headers)

        removed = await client.delete(f"/users/favorites/{recipe['id']}", headers=headers)
        again = await client.delete(f"/users/favorites/{recipe['id']}", headers=headers)

        assert removed.status_code == 200
        assert removed.json()["data"]["favoriteRecipes"] == []
        assert again.status_code == 400
        assert again.json()["message"] == "Recipe not in favorites"

    @pytest.mark.asyncio
    async def test_list_in_insertion_order(self, client, register, create_recipe):
        """Test that favorites keep the order they were added in."""
        _, headers = await register(username="alice")
        first = await create_recipe(headers, name="First")
        second = await create_recipe(headers, name="Second")
        third = await create_recipe(headers, name="Third")
        for recipe in (second, third, first):
            await client.post(f"/users/favorites/{recipe['id']}", headers=headers)

        response = await client.get("/users/favorites", params={"limit": 2}, headers=headers)

        data = response.json()["data"]
        assert [r["name"] for r in data["recipes"]] == ["Second", "Third"]
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["totalPages"] == 2
        assert data["pagination"]["hasNextPage"] is True

    @pytest.mark.asyncio
    async def test_favorites_require_auth(self, client):
        """Test that favorites are private."""
        response = await client.get("/users/favorites")
        assert response.status_code == 401
