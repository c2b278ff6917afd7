# db.py
import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

# Import the centralized settings object
from storefront.settings import settings

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """
    Rewrites plain PostgreSQL URLs (as handed out by most hosting providers)
    to the asyncpg driver. Anything else is returned untouched.
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


DATABASE_URL = normalize_database_url(settings.DATABASE_URL)

if DATABASE_URL.startswith("postgresql+asyncpg://"):
    logger.info("✅ Connecting to PostgreSQL database.")
else:
    logger.info("✅ Using local SQLite database for development.")


def build_engine(url: str, echo: bool = False):
    """
    Creates the async engine for `url`.

    Connection pooling options only make sense for server databases;
    SQLite uses its own pool classes which reject them.
    """
    pool_options = {}
    if not url.startswith("sqlite"):
        # `pool_recycle` keeps idle connections from being dropped by the
        # database or network after 30 minutes of inactivity.
        pool_options = dict(
            pool_size=10,
            max_overflow=5,
            pool_timeout=30,
            pool_recycle=1800,
        )
    return create_async_engine(url, echo=echo, **pool_options)


# --- SQLAlchemy Engine & Session ---

engine = build_engine(DATABASE_URL, echo=settings.DB_ECHO)

# `expire_on_commit=False` keeps loaded attributes usable after commit.
async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Base class for declarative models. All models in `models.py` inherit from this.
Base = declarative_base()


# --- FastAPI Dependency ---

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session to each request.

    Uses an `async with` block to ensure the session is always
    closed correctly, even if an error occurs.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
