"""Application configuration"""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    api_title: str = "Recipe Share API"
    api_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # JWT Settings
    jwt_secret: str = "CHANGE_ME_IN_PRODUCTION"
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24 * 7

    # Password hashing cost
    bcrypt_rounds: int = 12

    # Database
    database_url: str = "sqlite+aiosqlite:///data/recipes.db"

    # CORS
    cors_origins: list[str] = ["http://localhost:8081", "http://localhost:19006"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def configure_logging(level_name: str) -> None:
    """Configure root logging; unknown level names fall back to INFO"""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
