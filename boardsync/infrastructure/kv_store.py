"""SQL Key-Value Store: durable local storage for config and auth session.

Invariants:
    - get() of a missing key returns None, never raises
    - set() replaces the whole value (insert or update by primary key)
    - Failures surface as DatabaseError from DatabaseSessionManager
    - open() refuses a store that fails its health check, before creating tables
"""

import logging
from typing import Any

from sqlalchemy import select

from boardsync.core.errors import DatabaseError
from boardsync.infrastructure.database import DatabaseSessionManager
from boardsync.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)


class SqlKeyValueStore:
    """KeyValueStore backed by a single SQL table."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    @classmethod
    async def open(cls, database_url: str) -> "SqlKeyValueStore":
        manager = DatabaseSessionManager(database_url)
        if not await manager.health_check():
            await manager.dispose()
            raise DatabaseError(f"cannot open {database_url}", "open")
        await manager.create_schema()
        return cls(manager)

    async def get(self, key: str) -> Any | None:
        async with self._manager.session("read") as db:
            result = await db.execute(
                select(KeyValueEntry).where(KeyValueEntry.key == key),
            )
            entry = result.scalar_one_or_none()
            return entry.value if entry else None

    async def set(self, key: str, value: Any) -> None:
        async with self._manager.session("write") as db:
            entry = await db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            await db.commit()
        logger.debug(f"Stored local key {key}")

    async def delete(self, key: str) -> None:
        async with self._manager.session("delete") as db:
            entry = await db.get(KeyValueEntry, key)
            if entry is not None:
                await db.delete(entry)
                await db.commit()

    async def aclose(self) -> None:
        await self._manager.dispose()
