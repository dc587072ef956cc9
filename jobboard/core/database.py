from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from jobboard.core.config import settings

# Async engine
engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,  # ping before handing out a pooled connection
    echo=settings.SQL_ECHO,
)

# SQLite only enforces ON DELETE CASCADE with this pragma on
if engine.dialect.name == "sqlite":
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# ORM base class
Base = declarative_base()


async def get_db() -> AsyncSession:
    """FastAPI dependency: one async session (unit of work) per request"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models() -> None:
    """Create every table registered on Base (local development and tests)."""
    # Every model module has to be imported so its table lands on Base.metadata
    from jobboard.models import (  # noqa: F401
        user, category, skill, job, proposal, contract, contract_version,
        contract_change_request, review, notification,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
