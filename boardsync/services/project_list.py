"""Project List Cache: synchronous reads of the project list, deferred remote renames.

Invariants:
    - read() returns None only when remote persistence is disabled; an empty
      list means "signed in, no projects" or "not loaded yet"
    - read() never fetches
    - ensure_loaded() replaces the list wholesale, or leaves it untouched on failure
    - A list fetched for one user is dropped if the session changed meanwhile
    - write() updates the cache before any remote call; one rename per item,
      failures logged per item, no rollback
"""

import logging

from boardsync.core.domain_types import DEFAULT_PROJECT_NAME, ProjectId, ProjectSummary
from boardsync.core.errors import BoardSyncError
from boardsync.core.repository_protocols import RemoteBackend
from boardsync.infrastructure.background import BackgroundTaskRunner
from boardsync.services.capability_gate import CapabilityGate

logger = logging.getLogger(__name__)


class ProjectListCache:
    """Read-through/write-through cache of the current user's project summaries."""

    def __init__(self, gate: CapabilityGate, runner: BackgroundTaskRunner):
        self._gate = gate
        self._runner = runner

    def read(self) -> list[ProjectSummary] | None:
        if not self._gate.is_enabled():
            return None
        return self._gate.cache.projects

    async def ensure_loaded(self) -> None:
        if not self._gate.is_enabled():
            return
        backend = self._gate.backend
        identity = await backend.auth.get_session()
        if identity is None:
            return
        try:
            projects = await backend.boards.list_for_owner(identity.user_id)
        except BoardSyncError as e:
            logger.warning(
                f"Boards list load failed: {e.message}",
                extra={"error_code": e.code, "collection": "boards"},
            )
            return
        current = await backend.auth.get_session()
        if (
            not self._gate.is_current(backend)
            or current is None
            or current.user_id != identity.user_id
        ):
            logger.info("Session changed while loading boards list; discarding result")
            return
        self._gate.cache.replace_projects(projects)

    def write(self, items: list[ProjectSummary]) -> None:
        if not self._gate.is_enabled() or items is None:
            return
        backend = self._gate.backend
        self._gate.cache.replace_projects(items)
        for item in items:
            name = item.name or DEFAULT_PROJECT_NAME
            self._runner.spawn(
                self._rename(backend, item.id, name),
                f"rename board {item.id}",
            )

    @staticmethod
    async def _rename(backend: RemoteBackend, project_id: ProjectId, name: str) -> None:
        try:
            await backend.boards.rename(project_id, name)
        except BoardSyncError as e:
            logger.warning(
                f"Update board name failed: {e.message}",
                extra={"project_id": project_id, "error_code": e.code},
            )
