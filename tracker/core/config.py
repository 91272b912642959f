# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Settings read from environment variables once, at import time.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "project-tracker")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8010"))

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./tracker.db")
    POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))

    DEFAULT_EVENT_LIMIT: int = int(os.getenv("DEFAULT_EVENT_LIMIT", "100"))
    MAX_EVENT_LIMIT: int = int(os.getenv("MAX_EVENT_LIMIT", "1000"))

    SEED_DEFAULT_FUNCTIONS: bool = (
        os.getenv("SEED_DEFAULT_FUNCTIONS", "true").lower() == "true"
    )
    DEFAULT_ADMIN_FUNCTION: str = os.getenv("DEFAULT_ADMIN_FUNCTION", "Admin")
    DEFAULT_MEMBER_FUNCTION: str = os.getenv("DEFAULT_MEMBER_FUNCTION", "Member")

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
