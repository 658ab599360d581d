"""
Application configuration.

Values come from the environment (a `.env` file is loaded at startup) and are
frozen into a single `Settings` object. Anything that needs the signing key or
hashing costs receives that object explicitly instead of reading globals.
"""

import logging
import os
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

# Base directory of the project (parent of 'app')
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Database Directory
DB_DIR = BASE_DIR / "db"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    """Process-wide configuration, loaded once and never mutated."""

    model_config = ConfigDict(frozen=True)

    # Token signing
    jwt_secret_key: str = Field(repr=False)
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=240, gt=0)
    token_issuer: str = "task-tracker-api"
    token_audience: str = "task-tracker-client"

    # Argon2id cost factors
    password_time_cost: int = Field(default=3, ge=1)
    password_memory_cost: int = Field(default=65536, ge=8)
    password_parallelism: int = Field(default=4, ge=1)

    # Storage
    database_url: str = f"sqlite+aiosqlite:///{DB_DIR / 'tasks.db'}"
    sql_debug: bool = False

    # HTTP surface
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    trusted_hosts: list[str] = Field(default_factory=lambda: ["*"])
    enable_docs: bool = True
    enable_hsts: bool = False
    debug: bool = False

    log_level: str = "INFO"
    default_admin_email: str = "admin@example.com"


def load_settings() -> Settings:
    """Build a `Settings` instance from environment variables."""
    secret = os.getenv("JWT_SECRET_KEY")
    if not secret:
        # Development fallback; tokens will not survive a restart
        secret = secrets.token_urlsafe(32)
        logger.warning("JWT_SECRET_KEY is not set, using an auto-generated key")

    return Settings(
        jwt_secret_key=secret,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "240")),
        token_issuer=os.getenv("TOKEN_ISSUER", "task-tracker-api"),
        token_audience=os.getenv("TOKEN_AUDIENCE", "task-tracker-client"),
        password_time_cost=int(os.getenv("PASSWORD_TIME_COST", "3")),
        password_memory_cost=int(os.getenv("PASSWORD_MEMORY_COST", "65536")),
        password_parallelism=int(os.getenv("PASSWORD_PARALLELISM", "4")),
        database_url=os.getenv("DATABASE_URL", f"sqlite+aiosqlite:///{DB_DIR / 'tasks.db'}"),
        sql_debug=_env_bool("SQL_DEBUG", "false"),
        cors_origins=_env_list("CORS_ORIGINS", "*"),
        trusted_hosts=_env_list("TRUSTED_HOSTS", "*"),
        enable_docs=_env_bool("ENABLE_DOCS", "true"),
        enable_hsts=_env_bool("ENABLE_HSTS", "false"),
        debug=_env_bool("DEBUG", "false"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        default_admin_email=os.getenv("DEFAULT_ADMIN_EMAIL", "admin@example.com"),
    )


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor, also used as a FastAPI dependency."""
    return load_settings()
