"""Authentication router - register, login, current user, token refresh"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.auth import authenticate_user, create_access_token, get_current_user
from recipe_api.database import User, get_db
from recipe_api.exceptions import UnauthorizedError
from recipe_api.models import (
    AuthResponse,
    Envelope,
    TokenResponse,
    UserLogin,
    UserProfileResponse,
    UserRegister,
    UserResponse,
)
from recipe_api.routers.users import profile_response
from recipe_api.services.users import register_user

logger = logging.getLogger("recipe-api")

router = APIRouter()


def auth_payload(user: User) -> AuthResponse:
    return AuthResponse(**UserResponse.model_validate(user).model_dump(), token=create_access_token(user.id))


@router.post("/register", response_model=Envelope[AuthResponse], status_code=status.HTTP_201_CREATED)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    """Register a new user and return it with a session token"""
    user = await register_user(db, data)
    return Envelope(message="User registered successfully", data=auth_payload(user))


@router.post("/login", response_model=Envelope[AuthResponse])
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Login with email and password"""
    user = await authenticate_user(db, data.email, data.password)

    if user is None:
        logger.warning({"message": "Failed login", "email": data.email})
        raise UnauthorizedError("Invalid credentials")

    logger.info({"message": "User logged in", "user_id": user.id})
    return Envelope(message="Login successful", data=auth_payload(user))


@router.get("/me", response_model=Envelope[UserProfileResponse])
async def get_me(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Get the logged in user with favorite and created recipe summaries"""
    return Envelope(data=await profile_response(db, current_user))


@router.post("/refresh", response_model=Envelope[TokenResponse])
async def refresh_token(current_user: User = Depends(get_current_user)):
    """Issue a fresh token for an authenticated user"""
    return Envelope(message="Token refreshed successfully", data=TokenResponse(token=create_access_token(current_user.id)))
