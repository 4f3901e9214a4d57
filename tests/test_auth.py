"""
API tests for registration, login and token handling.
"""

from datetime import timedelta

import pytest
from jose import jwt

from recipe_api.auth import create_access_token, decode_token, hash_password, token_subject, verify_password
from recipe_api.config import get_settings
from recipe_api.exceptions import UnauthorizedError


class TestPasswordHashing:
    """Tests for bcrypt helpers."""

    def test_hash_is_not_plaintext(self):
        """Test that the stored hash never equals the password."""
        hashed = hash_password("secret1")
        assert hashed != "secret1"
        assert hashed.startswith("$2")

    def test_verify_password(self):
        """Test that verification accepts the right password only."""
        hashed = hash_password("secret1")
        assert verify_password("secret1", hashed)
        assert not verify_password("secret2", hashed)


class TestTokens:
    """Tests for JWT creation and decoding."""

    def test_token_payload(self):
        """Test that a token carries the user id and access type."""
        payload = decode_token(create_access_token("user-1"))
        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token_rejected(self):
        """Test that an expired token fails to decode."""
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-10))
        with pytest.raises(UnauthorizedError) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Not authorized, token failed"

    def test_subject_of_access_token(self):
        """Test that the subject is read from an access token."""
        assert token_subject({"sub": "user-1", "type": "access"}) == "user-1"

    @pytest.mark.parametrize(
        "claims, message",
        [
            ({"sub": "user-1", "type": "refresh"}, "Invalid token type"),
            ({"sub": "user-1"}, "Invalid token type"),
            ({"type": "access"}, "Invalid token payload"),
            ({"sub": "", "type": "access"}, "Invalid token payload"),
            ({"sub": 42, "type": "access"}, "Invalid token payload"),
        ],
    )
    def test_subject_rejects_bad_claims(self, claims, message):
        """Test that tokens of the wrong type or without a usable subject are refused."""
        with pytest.raises(UnauthorizedError) as exc_info:
            token_subject(claims)
        assert exc_info.value.message == message


class TestRegister:
    """Tests for POST /auth/register."""

    @pytest.mark.asyncio
    async def test_register_returns_user_and_token(self, client):
        """Test that registration returns the public user and a token."""
        payload = {
            "email": "a@x.com",
            "username": "a",
            "password": "secret1",
            "firstName": "A",
            "lastName": "B",
        }
        response = await client.post("/auth/register", json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        data = body["data"]
        assert data["email"] == "a@x.com"
        assert data["role"] == "user"
        assert data["token"]
        assert "password" not in data
        assert "passwordHash" not in data

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, client, register):
        """Test that a second account with the same email is a conflict."""
        await register(username="alice", email="alice@example.com")
        response = await client.post(
            "/auth/register",
            json={
                "email": "alice@example.com",
                "username": "other",
                "password": "secret1",
                "firstName": "A",
                "lastName": "B",
            },
        )

        assert response.status_code == 400
        assert response.json()["message"] == "User with this email already exists"
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_duplicate_username_rejected(self, client, register):
        """Test that a taken username is a conflict."""
        await register(username="alice")
        response = await client.post(
            "/auth/register",
            json={
                "email": "new@example.com",
                "username": "alice",
                "password": "secret1",
                "firstName": "A",
                "lastName": "B",
            },
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Username is already taken"

    @pytest.mark.asyncio
    async def test_email_kept_as_typed(self, client):
        """Test that a mixed-case address is stored and returned exactly as sent."""
        payload = {
            "email": "Alice@Example.COM",
            "username": "alice",
            "password": "secret1",
            "firstName": "A",
            "lastName": "B",
        }
        response = await client.post("/auth/register", json=payload)

        assert response.status_code == 201
        assert response.json()["data"]["email"] == "Alice@Example.COM"

    @pytest.mark.asyncio
    async def test_email_match_is_case_sensitive(self, client, register):
        """Test that addresses differing only in case belong to different accounts."""
        await register(username="alice", email="Alice@Example.COM")

        response = await client.post(
            "/auth/register",
            json={
                "email": "Alice@example.com",
                "username": "other",
                "password": "secret1",
                "firstName": "A",
                "lastName": "B",
            },
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(self, client):
        """Test that a malformed address fails validation."""
        response = await client.post(
            "/auth/register",
            json={"email": "not-an-email", "username": "a", "password": "secret1", "firstName": "A", "lastName": "B"},
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Validation failed")

    @pytest.mark.asyncio
    async def test_short_password_rejected(self, client):
        """Test that passwords under six characters fail validation."""
        response = await client.post(
            "/auth/register",
            json={"email": "a@example.com", "username": "a", "password": "12345", "firstName": "A", "lastName": "B"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["message"].startswith("Validation failed")

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, client):
        """Test that a registration without names fails validation."""
        response = await client.post(
            "/auth/register", json={"email": "a@example.com", "username": "a", "password": "secret1"}
        )
        assert response.status_code == 400


class TestLogin:
    """Tests for POST /auth/login."""

    @pytest.mark.asyncio
    async def test_login_returns_same_user(self, client, register):
        """Test that login succeeds with the registered credentials."""
        user, _ = await register(username="alice", password="secret1")

        response = await client.post("/auth/login", json={"email": "alice@example.com", "password": "secret1"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["data"]["id"] == user["id"]
        assert body["data"]["token"]

    @pytest.mark.asyncio
    async def test_login_with_mixed_case_email(self, client, register):
        """Test that an address registered with capitals logs in when typed the same way."""
        user, _ = await register(username="alice", email="Alice@Example.COM")

        response = await client.post("/auth/login", json={"email": "Alice@Example.COM", "password": "secret1"})

        assert response.status_code == 200
        assert response.json()["data"]["id"] == user["id"]

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, register):
        """Test that a wrong password is rejected without saying which part failed."""
        await register(username="alice")

        response = await client.post("/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_email(self, client):
        """Test that an unknown email is rejected the same way."""
        response = await client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret1"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestCurrentUser:
    """Tests for GET /auth/me and token checks on protected routes."""

    @pytest.mark.asyncio
    async def test_me_returns_profile(self, client, register, create_recipe):
        """Test that /auth/me includes created recipe summaries."""
        user, headers = await register(username="alice")
        recipe = await create_recipe(headers)

        response = await client.get("/auth/me", headers=headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == user["id"]
        assert data["favoriteRecipes"] == []
        assert data["createdRecipes"] == [
            {
                "id": recipe["id"],
                "name": recipe["name"],
                "image": recipe["image"],
                "rating": recipe["rating"],
                "cuisine": recipe["cuisine"],
            }
        ]

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        """Test that protected routes require a bearer token."""
        response = await client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        """Test that an undecodable token is rejected."""
        response = await client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized, token failed"
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_wrong_token_type(self, client, register):
        """Test that only access tokens are accepted."""
        user, _ = await register(username="alice")
        settings = get_settings()
        token = jwt.encode({"sub": user["id"], "type": "refresh"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token type"

    @pytest.mark.asyncio
    async def test_token_without_subject(self, client):
        """Test that a signed access token with no user id is rejected."""
        settings = get_settings()
        token = jwt.encode({"type": "access"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        response = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token payload"

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, client, register):
        """Test that a valid token for a deleted account is rejected."""
        _, headers = await register(username="alice")
        await client.delete("/users/profile", headers=headers)

        response = await client.get("/auth/me", headers=headers)

        assert response.status_code == 401
        assert response.json()["message"] == "User not found"


class TestRefresh:
    """Tests for POST /auth/refresh."""

    @pytest.mark.asyncio
    async def test_refresh_issues_working_token(self, client, register):
        """Test that the refreshed token authenticates the same user."""
        user, headers = await register(username="alice")

        response = await client.post("/auth/refresh", headers=headers)

        assert response.status_code == 200
        token = response.json()["data"]["token"]
        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["data"]["id"] == user["id"]
