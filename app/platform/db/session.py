from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.platform.config import settings


def _pool_options(db_url: str) -> dict:
    if db_url.startswith("sqlite"):
        # aiosqlite connections must not outlive the event loop that opened them
        return {"poolclass": NullPool}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 20,
        "max_overflow": 30,  # (burst capacity)
        "pool_timeout": 30,
    }


def to_sync_url(db_url: str) -> str:
    """Map an async driver URL onto its sync counterpart for Celery workers."""
    if db_url.startswith("postgresql+asyncpg://"):
        return db_url.replace("postgresql+asyncpg://", "postgresql://", 1)
    if db_url.startswith("sqlite+aiosqlite://"):
        return db_url.replace("sqlite+aiosqlite://", "sqlite://", 1)
    return db_url


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    future=True,
    **_pool_options(settings.DATABASE_URL),
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False, autocommit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session


# Created lazily so the API process never opens a sync pool
_sync_engine = None
_sync_session_factory = None


def get_sync_db():
    """Get a database session for Celery tasks and scripts."""
    global _sync_engine, _sync_session_factory

    if _sync_engine is None:
        db_url = to_sync_url(settings.DATABASE_URL)
        _sync_engine = create_engine(db_url, **_pool_options(db_url))
        _sync_session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_sync_engine)

    return _sync_session_factory()
