from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession

from libs.common.config import get_settings

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    """Pool tuning only applies to server databases, not SQLite files."""
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,  # Test connections before using
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
    }


# echo=True for local dev to see SQL queries
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=(settings.ENVIRONMENT == "local"),
    **_engine_options(settings.DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)
