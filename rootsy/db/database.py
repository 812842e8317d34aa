import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from rootsy.core.errors import NotInitializedError, StorageUnavailableError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


def _enable_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the async engine for one SQLite file.

    Nothing is opened until ``initialize`` runs; after ``close`` every
    accessor raises ``NotInitializedError`` until ``initialize`` runs again.
    """

    def __init__(self, db_path: Path, echo: bool = False) -> None:
        self.db_path = db_path
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def initialize(self) -> None:
        """Create the parent directory, open the engine and create tables."""
        if self._engine is not None:
            return

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Failed to create storage directory {self.db_path.parent}: {e}"
            ) from e

        # Registers the ORM tables on Base.metadata
        import rootsy.db.models  # noqa: F401  # pyright: ignore[reportUnusedImport]

        engine = create_async_engine(f"sqlite+aiosqlite:///{self.db_path}", echo=self.echo)
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            raise StorageUnavailableError(f"Failed to open database {self.db_path}: {e}") from e

        self._engine = engine
        self._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info(f"Opened database at {self.db_path}")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield an ORM session that is always closed on exit."""
        if self._session_factory is None:
            raise NotInitializedError("Database not initialized")
        async with self._session_factory() as db:
            yield db

    async def close(self) -> None:
        """Dispose of the engine. Safe to call more than once."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info(f"Closed database at {self.db_path}")
