"""Local Store Engine: async SQLAlchemy sessions over the on-device database.

Invariants:
    - A session that raises is rolled back before the error leaves it
    - SQLAlchemy failures leave as DatabaseError tagged with the caller's operation
    - create_schema() only ever creates missing tables, never alters existing ones
    - health_check() never raises; False means the file cannot be opened or queried

Design Decisions:
    - Holds what a browser keeps in localStorage: saved connection config and
      the persisted auth session, no board content
    - Default pool: sqlite+aiosqlite rejects sizing arguments for :memory:
    - expire_on_commit=False: committed rows stay readable outside the session
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from boardsync.core.errors import DatabaseError
from boardsync.db.base import Base

logger = logging.getLogger(__name__)

# most specific first; SQLAlchemyError catches the rest
_FAILURE_REASONS: tuple[tuple[type[SQLAlchemyError], str], ...] = (
    (IntegrityError, "constraint violated"),
    (OperationalError, "store unavailable"),
    (SQLAlchemyError, "unexpected SQL error"),
)


def _reason(exc: SQLAlchemyError) -> str:
    for kind, reason in _FAILURE_REASONS:
        if isinstance(exc, kind):
            return reason
    return "unexpected SQL error"


class DatabaseSessionManager:
    """Owns the engine of one local store file."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = create_async_engine(database_url, pool_pre_ping=True)
        self._sessions = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    async def create_schema(self) -> None:
        import boardsync.models  # noqa: F401  (registers tables on Base.metadata)
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error(f"Local store schema creation failed: {e}", extra={"operation": "create_schema"})
            raise DatabaseError(_reason(e), "create_schema")

    @asynccontextmanager
    async def session(self, operation: str = "query") -> AsyncGenerator[AsyncSession, None]:
        """Session scoped to one store operation; rolled back if it raises."""
        db = self._sessions()
        try:
            yield db
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Local store {operation} failed: {e}", extra={"operation": operation})
            raise DatabaseError(_reason(e), operation)
        finally:
            await db.close()

    async def health_check(self) -> bool:
        try:
            async with self.session("health_check") as db:
                await db.execute(text("SELECT 1"))
        except DatabaseError:
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()
