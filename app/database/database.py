from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

# Async engine for application use. Report queries are read-only.
if settings.ENVIRONMENT == "test":
    async_engine = create_async_engine(
        settings.async_database_url,
        echo=settings.DEBUG,
        poolclass=NullPool
    )
else:
    async_engine = create_async_engine(
        settings.async_database_url,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        echo=settings.DEBUG
    )

# Async session factory. Each ledger query opens its own session from here.
AsyncSessionLocal = sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

Base = declarative_base()

