# settings.py
import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Project
    PROJECT_NAME: str = "Storefront Catalog API"
    API_V1_PREFIX: str = "/api"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Security (tokens are issued by the session service, we only verify them)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "super-secret-key")
    JWT_ALGORITHM: str = "HS256"

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite+aiosqlite:///./dev.db"  # default local SQLite
    )
    DB_ECHO: bool = False

    # Catalog listing
    DEFAULT_PAGE_LIMIT: int = 12
    MAX_PAGE_LIMIT: int = 60
    SUBTITLE_SUFFIX: str = "Shoes"

    # Frontend URL (CORS)
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    class Config:
        env_file = ".env"
        case_sensitive = True


# Instantiate settings globally
settings = Settings()
