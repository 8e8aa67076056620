"""
Application configuration.

Settings come from the process environment or a local .env file:

    DATABASE_URL / DB   MongoDB connection string
    DATABASE_NAME       database holding every collection
    SECRET_KEY          symmetric JWT signing secret
    PORT                listening port (8000 when unset)
"""

import logging
import sys
from functools import lru_cache
from typing import List

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "dev_secret_change_me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Hotel Management API"
    app_version: str = "1.0.0"
    debug: bool = False

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["*"]

    database_url: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("database_url", "db"),
        description="MongoDB connection string",
    )
    database_name: str = "hotel_management"
    db_timeout_ms: int = Field(
        default=30_000,
        gt=0,
        description="Wait budget for a single database operation",
    )

    secret_key: str = Field(default=DEFAULT_SECRET_KEY, min_length=1)
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = Field(default=24, gt=0)
    refresh_token_expire_hours: int = Field(default=168, gt=0)
    password_hash_method: str = Field(
        default="scrypt",
        description="werkzeug hash method, e.g. 'scrypt' or 'pbkdf2:sha256:600000'",
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance, read once per process."""
    return Settings()


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    settings = get_settings()
    if settings.debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)-22s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    logger = logging.getLogger("hotel")
    if settings.secret_key == DEFAULT_SECRET_KEY:
        logger.warning("SECRET_KEY is not set; using the development default")
    return logger
