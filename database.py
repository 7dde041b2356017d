from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv
from fastapi import HTTPException
import logging

load_dotenv()

from config import settings  # noqa: E402  (.env must be loaded first)

logger = logging.getLogger(__name__)

# CRITICAL: Never hardcode production credentials. DATABASE_URL comes from the environment.
DATABASE_URL = settings.DATABASE_URL

# Only echo SQL in development with DEBUG on
ECHO_SQL = settings.ENVIRONMENT == "development" and settings.DEBUG


def _engine_options(url: str) -> dict:
    """Build engine keyword arguments for the configured backend"""
    if url.startswith("sqlite"):
        # SQLite (local dev and tests) has no server-side pool to size
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            # A single shared connection keeps the in-memory database alive
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_pre_ping": settings.DB_POOL_PRE_PING,  # Test connections before using them
        "pool_size": settings.DB_POOL_SIZE,  # Number of connections to maintain
        "max_overflow": settings.DB_MAX_OVERFLOW,  # Additional connections beyond pool_size
        "pool_timeout": settings.DB_POOL_TIMEOUT,  # Seconds to wait for a connection
        "pool_recycle": settings.DB_POOL_RECYCLE,  # Recycle connections after this many seconds
        "connect_args": {
            "server_settings": {"application_name": "clinic_crm_backend"},
            "command_timeout": 60,
        },
    }


try:
    engine = create_async_engine(
        DATABASE_URL,
        echo=ECHO_SQL,
        future=True,
        **_engine_options(DATABASE_URL),
    )
    logger.info("Database engine created for %s", engine.url.render_as_string(hide_password=True))
except Exception as e:
    logger.error(f"Failed to create database engine: {e}", exc_info=True)
    raise


if engine.dialect.name == "sqlite":
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # SQLite ignores ON DELETE rules unless enforcement is switched on per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()


# Dependency for FastAPI routes
async def get_db():
    """
    Dependency function to get database session.
    One session (and one transaction) per request: everything a handler
    writes is committed together, or rolled back together on error.

    Usage in FastAPI routes:
        async def my_route(db: AsyncSession = Depends(get_db)):
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except (HTTPException, LookupError, ValueError, PermissionError):
            # Rejected requests: nothing they staged may persist
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"Database error in session: {str(e)}", exc_info=True)
            raise
        finally:
            await session.close()


# Alias for consistency
get_async_session = get_db
