"""Database Session Manager — one long-lived async engine, one fresh session per transaction attempt.

Invariants:
    - Exactly one engine per manager; the engine is never mutated after open()
    - new_session() always returns an independent AsyncSession (own transaction boundary)
    - Malformed URLs, missing drivers and unreachable stores → DatabaseConnectionError
    - SQLite connections enforce foreign keys, so the co-partitioning FKs hold locally too
    - SQLite transactions start with an explicit BEGIN: every read of a unit of work
      runs inside its transaction, so contending writers see "database is locked"
    - cockroachdb:// and postgresql:// URLs are rewritten to the asyncpg driver

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
      (no global import side effects); operations receive the manager explicitly
    - expire_on_commit=False: records are built from rows after commit
    - pool_pre_ping for stale connection detection behind load balancers
"""

import logging
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    ArgumentError, DBAPIError, InvalidRequestError, NoSuchModuleError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from movr.config import normalize_database_url
from movr.core.errors import DatabaseConnectionError, ErrorContext
from movr.db.base import Base
from movr.infrastructure.db_errors import translate_db_error
from movr.infrastructure.transaction import RetryPolicy
import movr.models  # noqa: F401  (populates Base.metadata)

logger = logging.getLogger(__name__)


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    # Driver-managed BEGIN is deferred to the first DML; take over so reads
    # run inside the transaction they belong to.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn: Any) -> None:
    conn.exec_driver_sql("BEGIN")


class DatabaseSessionManager:
    """Owns the engine handle and issues scoped sessions."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        verbose_logging: bool = False,
        retry_policy: RetryPolicy | None = None,
    ):
        try:
            url = make_url(normalize_database_url(database_url))
        except ArgumentError as e:
            raise DatabaseConnectionError("malformed connection string") from e

        engine_kwargs: dict[str, Any] = {
            "echo": verbose_logging,
            "pool_pre_ping": True,
        }
        self.is_sqlite = url.get_backend_name() == "sqlite"
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_recycle=3600,
            )
        try:
            self.engine = create_async_engine(url, **engine_kwargs)
        except (
            ArgumentError, InvalidRequestError, NoSuchModuleError, ImportError,
        ) as e:
            raise DatabaseConnectionError(
                f"unsupported dialect or driver '{url.drivername}'",
            ) from e

        if self.is_sqlite:
            event.listen(
                self.engine.sync_engine, "connect", _configure_sqlite_connection,
            )
            event.listen(self.engine.sync_engine, "begin", _begin_sqlite_transaction)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self.retry_policy = retry_policy or RetryPolicy()

    @classmethod
    async def open(
        cls,
        database_url: str,
        *,
        auto_create_schema: bool = False,
        verbose_logging: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        retry_policy: RetryPolicy | None = None,
    ) -> "DatabaseSessionManager":
        """Build the manager; optionally create the schema once, eagerly."""
        manager = cls(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            verbose_logging=verbose_logging,
            retry_policy=retry_policy,
        )
        if auto_create_schema:
            try:
                await manager.create_schema()
            except DatabaseConnectionError:
                await manager.close()
                raise
        logger.info(
            f"Database engine opened ({manager.engine.url.render_as_string(hide_password=True)})",
        )
        return manager

    def new_session(self) -> AsyncSession:
        """Independent unit-of-work context; caller owns its lifetime."""
        return self._session_factory()

    async def create_schema(self) -> None:
        """Issue CREATE TABLE statements for every model (idempotent)."""
        await self._run_ddl(Base.metadata.create_all, "create_schema")
        logger.info("Database schema ensured")

    async def drop_schema(self) -> None:
        await self._run_ddl(Base.metadata.drop_all, "drop_schema")

    async def _run_ddl(self, fn, operation: str) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(fn)
        except (DBAPIError, OSError) as e:
            logger.error(f"DDL {operation} failed: {e}")
            raise translate_db_error(e, ErrorContext(operation=operation)) from e

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup, torn down on shutdown)
db_manager: DatabaseSessionManager | None = None


async def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = await DatabaseSessionManager.open(database_url, **kwargs)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.close()
        db_manager = None


def get_db_manager() -> DatabaseSessionManager:
    """FastAPI dependency for the process-wide session manager."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager
