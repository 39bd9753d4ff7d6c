import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _split_env_list(value: str) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item and item.strip()]


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) in {"1", "true", "True", "yes"}


class Settings:
    """Centralized application settings loaded from environment variables.

    This keeps security-sensitive values (like JWT secrets) and cross-cutting
    config (like CORS, paging limits and media storage) in one place.
    """

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_AUTO_CREATE: bool = _env_flag("DB_AUTO_CREATE")
    DB_ECHO: bool = _env_flag("DB_ECHO")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # JWT / Auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    REFRESH_SECRET_KEY: str = os.getenv("REFRESH_SECRET_KEY", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
    REFRESH_TOKEN_EXPIRE_DAYS: int = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "10"))
    JWT_ISSUER: str | None = os.getenv("JWT_ISSUER") or None
    JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE") or None
    COOKIE_SECURE: bool = _env_flag("COOKIE_SECURE", "1")

    # CORS
    # Comma-separated list, e.g. "http://localhost:3000,http://localhost:5173"
    _cors_origins_env: str = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://localhost:8000",
    )
    CORS_ORIGINS: List[str] = _split_env_list(_cors_origins_env)

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = _env_flag("RATE_LIMIT_ENABLED", "1")
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")

    # Media storage
    MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", "./public/media")
    MEDIA_BASE_URL: str = os.getenv("MEDIA_BASE_URL", "http://localhost:8000/media")

    # Pagination
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))


settings = Settings()
