from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Session
from sqlalchemy.pool import NullPool
from greendata.core.config import settings
from greendata.core.change_feed import change_feed

db_url = settings.DATABASE_URL

if db_url.startswith("sqlite"):
    # aiosqlite connections are not shared between event loops
    engine = create_async_engine(db_url, echo=settings.DB_ECHO, poolclass=NullPool)
else:
    engine = create_async_engine(
        db_url,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


class TrackedSession(Session):
    """Sync session backing AsyncSession; publishes committed file rows to the change feed."""


change_feed.install(TrackedSession)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    sync_session_class=TrackedSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def create_tables():
    # Import models so they register on Base.metadata
    from greendata.models import file, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
