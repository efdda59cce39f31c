"""Database engine setup, schema initialisation and connectivity checks."""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text
from .exceptions import StorageError
from .logger import logger

# Base class for ORM models
Base = declarative_base()


class Database:
    """Storage handle shared by all requests: one engine, one session factory.

    Each crud call opens its own short-lived session from the factory, so the
    handle is safe to share across concurrent requests.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async def check_connection(self) -> bool:
        """Check if database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise
        """
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    async def dispose(self):
        """Gracefully close all database connections.

        Called during application shutdown to properly cleanup the connection pool.
        """
        logger.info("Disposing database engine and closing connections")
        try:
            await self.engine.dispose()
            logger.info("Database connections closed successfully")
        except SQLAlchemyError as e:
            logger.error(f"Error disposing database engine: {str(e)}", exc_info=True)


# ==================== Initialisation ====================


async def init_db(db_url: str, echo: bool = False) -> Database:
    """Open the database and create any missing tables.

    Table creation uses CREATE TABLE IF NOT EXISTS semantics, so calling this
    against an existing database is a no-op.

    Raises:
        StorageError: if the database cannot be opened or the schema cannot be created
    """
    # Register models on Base.metadata before create_all
    from . import models  # noqa: F401

    try:
        engine = create_async_engine(db_url, echo=echo, future=True, pool_pre_ping=True)
    except (SQLAlchemyError, ImportError) as e:
        raise StorageError(f"Failed to configure database engine: {e}") from e

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as e:
        await engine.dispose()
        raise StorageError(f"Failed to initialise database schema: {e}") from e

    logger.info(f"Database initialized successfully: tables={sorted(Base.metadata.tables)}")
    return Database(engine)
