from typing import AsyncGenerator
import logging
from models import Base
from config.settings import settings
from sqlalchemy import event
from sqlalchemy.pool import NullPool
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

logger = logging.getLogger(__name__)


# Convert sync URL to async URL: mysql+pymysql:// -> mysql+aiomysql://
# Note: Can't use simple replace() because 'aiomysql://' contains 'mysql://' as substring
def _convert_to_async_url(url: str) -> str:
    """Convert a sync database URL to its async driver equivalent."""
    if url.startswith('mysql+pymysql://'):
        return 'mysql+aiomysql://' + url[len('mysql+pymysql://'):]
    elif url.startswith('mysql://'):
        return 'mysql+aiomysql://' + url[len('mysql://'):]
    elif url.startswith('sqlite://'):
        return 'sqlite+aiosqlite://' + url[len('sqlite://'):]
    else:
        return url


def _engine_options() -> dict:
    if settings.is_sqlite:
        # One connection per session; SQLite connections must not outlive their event loop
        return {"poolclass": NullPool, "echo": False}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
        "echo": False,
    }


ASYNC_DATABASE_URL = _convert_to_async_url(settings.DATABASE_URL)

async_engine = create_async_engine(ASYNC_DATABASE_URL, **_engine_options())

if settings.is_sqlite:
    @event.listens_for(async_engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # Comment rows rely on ON DELETE CASCADE when their report is removed
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an ASYNC database session.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_async_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create database tables that don't exist yet."""
    logger.info("Initializing database...")
    try:
        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise
