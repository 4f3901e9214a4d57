"""Password hashing, session tokens and the current-user dependency"""

from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recipe_api.config import get_settings
from recipe_api.database import User, get_db
from recipe_api.exceptions import UnauthorizedError

ACCESS_TOKEN_TYPE = "access"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def hash_password(password: str) -> str:
    """Salted bcrypt hash at the configured cost"""
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=get_settings().bcrypt_rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """Sign a token naming the user; lifetime defaults to the configured number of hours"""
    settings = get_settings()
    lifetime = expires_delta if expires_delta is not None else timedelta(hours=settings.jwt_expire_hours)
    claims = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Verify signature and expiry and return the claims"""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise UnauthorizedError("Not authorized, token failed") from None


def token_subject(claims: dict) -> str:
    """The user id an access token was issued for"""
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise UnauthorizedError("Invalid token type")

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise UnauthorizedError("Invalid token payload")
    return subject


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user owning these credentials, or None"""
    user = await db.scalar(select(User).where(User.email == email))
    if user is not None and verify_password(password, user.password_hash):
        return user
    return None


async def get_current_user(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db)) -> User:
    """Resolve the bearer token to a stored user"""
    user = await db.get(User, token_subject(decode_token(token)))
    if user is None:
        raise UnauthorizedError("User not found")
    return user
