from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import get_settings
from app.utils.logger import logger

settings = get_settings()

_engine_kwargs = {"echo": settings.debug, "future": True}
if not settings.database_url.startswith("sqlite"):
    _engine_kwargs.update(
        pool_pre_ping=True,  # Detect and recycle stale/broken connections
        pool_recycle=300,
    )

engine = create_async_engine(settings.database_url, **_engine_kwargs)

AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

Base = declarative_base()


# Dependency for FastAPI routes
async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db(bind=None):
    """Create all database tables"""
    # Import models to register them with Base
    from app.models import user, action_plan, reminder  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created")
