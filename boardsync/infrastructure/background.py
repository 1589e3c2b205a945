"""Background Task Runner: fire-and-forget remote writes with log-only failure handling.

Invariants:
    - spawn() never raises and never blocks the caller
    - Every spawned task is strongly referenced until it finishes
    - A failed task is logged once in its done callback; no retry, no rollback
    - Writes are neither ordered nor coalesced: N spawns issue N remote calls

Design Decisions:
    - asyncio.create_task + done callback instead of a queue: no durable
      replay exists, so a queue would only add ordering we do not promise
    - Without a running loop (sync caller outside asyncio) the coroutine is
      closed and the drop is logged; the local cache is already updated
    - drain() exists for tests and shutdown; production callers never join
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from boardsync.core.errors import BoardSyncError

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Spawns and tracks fire-and-forget coroutines."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(
        self, coro: Coroutine[Any, Any, Any], description: str,
    ) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning(
                f"No running event loop; dropped background task: {description}",
                extra={"task": description},
            )
            return None
        task = loop.create_task(coro, name=description)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(
                f"Background task cancelled: {task.get_name()}",
                extra={"task": task.get_name()},
            )
            return
        exc = task.exception()
        if exc is None:
            return
        if isinstance(exc, BoardSyncError):
            logger.warning(
                f"{task.get_name()}: {exc.message}",
                extra={
                    "task": task.get_name(),
                    "error_code": exc.code,
                    "collection": exc.context.collection,
                    "project_id": exc.context.project_id,
                },
            )
        else:
            logger.error(
                f"Background task crashed: {task.get_name()}",
                exc_info=exc,
                extra={"task": task.get_name()},
            )

    async def drain(self) -> None:
        """Wait until every task spawned so far (and any they spawn) has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            # let done callbacks run and discard finished tasks
            await asyncio.sleep(0)
