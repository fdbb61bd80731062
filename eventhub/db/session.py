from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from eventhub.core.config import settings


def _engine_options(url: str) -> dict:
    # SQLite drivers use a single-connection pool and reject sizing options
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": 20,            # Number of permanent connections to maintain
        "max_overflow": 10,         # Maximum number of connections to allow beyond pool_size
        "pool_pre_ping": True,      # Verify connections before using them
        "pool_recycle": 3600,       # Recycle connections after 1 hour
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    **_engine_options(settings.DATABASE_URL),
)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
