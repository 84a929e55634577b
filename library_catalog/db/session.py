from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from collections.abc import AsyncGenerator

from library_catalog.core.config import settings
from library_catalog.core.logging import get_logger

logger = get_logger("db.session")


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine for ``database_url``.

    SQLite shares one connection (tests and local runs); other stores get a
    bounded pool whose timeout caps how long a request waits for a connection.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session (and one transaction) per request.

    Any exception, including HTTP errors raised by the handler, discards every
    write made during the request.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.debug(f"Request transaction rolled back: {type(exc).__name__}")
            raise
