"""Board Content Cache: lazily loaded per-project documents with whole-document upserts.

Invariants:
    - read() returns None if disabled, the id is empty, or the document was never loaded
    - After ensure_loaded(id) completes while enabled, every field of id is readable
      and non-None, whatever the remote outcome
    - ensure_loaded() of an already cached id issues no remote call
    - write() mutates the cache synchronously, then spawns one upsert of the
      complete document; no ordering or coalescing between upserts
    - Each upsert sends a snapshot taken at write time, never a partial patch

Design Decisions:
    - Absent row (RowNotFoundError) seeds defaults silently; other failures log,
      then seed defaults
    - A fetch that resolves after a local write (or a concurrent load) for the
      same id does not replace the cached document
"""

import logging
from datetime import datetime, timezone
from typing import Any

from boardsync.core.domain_types import BoardDocument, BoardField, ProjectId
from boardsync.core.errors import BoardSyncError, RowNotFoundError
from boardsync.core.repository_protocols import RemoteBackend
from boardsync.infrastructure.background import BackgroundTaskRunner
from boardsync.services.capability_gate import CapabilityGate

logger = logging.getLogger(__name__)


class BoardContentCache:
    """Read-through/write-through cache of board documents keyed by project id."""

    def __init__(self, gate: CapabilityGate, runner: BackgroundTaskRunner):
        self._gate = gate
        self._runner = runner

    # ─── Reads ───────────────────────────────────────────────────

    def read(self, project_id: ProjectId | None, board_field: BoardField | str) -> Any:
        if not self._gate.is_enabled() or not project_id:
            return None
        doc = self._gate.cache.get_document(project_id)
        return doc.get(BoardField(board_field)) if doc else None

    def read_tasks(self, project_id: ProjectId | None) -> list | None:
        return self.read(project_id, BoardField.TASKS)

    def read_settings(self, project_id: ProjectId | None) -> dict | None:
        return self.read(project_id, BoardField.SETTINGS)

    def read_view(self, project_id: ProjectId | None) -> str | None:
        return self.read(project_id, BoardField.VIEW)

    def read_palettes(self, project_id: ProjectId | None) -> list | None:
        return self.read(project_id, BoardField.CUSTOM_PALETTES)

    async def ensure_loaded(self, project_id: ProjectId | None) -> None:
        if not self._gate.is_enabled() or not project_id:
            return
        if self._gate.cache.has_document(project_id):
            return
        backend = self._gate.backend
        user_before = await _session_user(backend)
        try:
            doc = await backend.board_data.get(project_id)
        except RowNotFoundError:
            doc = BoardDocument()
        except BoardSyncError as e:
            logger.warning(
                f"Board data load failed: {e.message}",
                extra={"project_id": project_id, "error_code": e.code},
            )
            doc = BoardDocument()
        if not self._gate.is_current(backend) or await _session_user(backend) != user_before:
            logger.info(
                "Session changed while loading board data; discarding result",
                extra={"project_id": project_id},
            )
            return
        if not self._gate.cache.has_document(project_id):
            self._gate.cache.put_document(project_id, doc)

    # ─── Writes ──────────────────────────────────────────────────

    def write(
        self, project_id: ProjectId | None, board_field: BoardField | str, value: Any,
    ) -> None:
        if not self._gate.is_enabled() or not project_id:
            return
        doc = self._gate.cache.ensure_document(project_id)
        doc.set(BoardField(board_field), value)
        self.persist(project_id)

    def write_tasks(self, project_id: ProjectId | None, tasks: list) -> None:
        self.write(project_id, BoardField.TASKS, tasks)

    def write_settings(self, project_id: ProjectId | None, settings: dict) -> None:
        self.write(project_id, BoardField.SETTINGS, settings)

    def write_view(self, project_id: ProjectId | None, view: str) -> None:
        self.write(project_id, BoardField.VIEW, view)

    def write_palettes(self, project_id: ProjectId | None, palettes: list) -> None:
        self.write(project_id, BoardField.CUSTOM_PALETTES, palettes)

    def persist(self, project_id: ProjectId) -> None:
        """Spawn an upsert of the cached document as it is right now."""
        if not self._gate.is_enabled() or not project_id:
            return
        doc = self._gate.cache.get_document(project_id)
        if doc is None:
            return
        snapshot = doc.clone()
        updated_at = datetime.now(timezone.utc)
        self._runner.spawn(
            self._upsert(self._gate.backend, project_id, snapshot, updated_at),
            f"upsert board_data {project_id}",
        )

    @staticmethod
    async def _upsert(
        backend: RemoteBackend,
        project_id: ProjectId,
        snapshot: BoardDocument,
        updated_at: datetime,
    ) -> None:
        try:
            await backend.board_data.upsert(project_id, snapshot, updated_at)
        except BoardSyncError as e:
            logger.warning(
                f"Upsert board_data failed: {e.message}",
                extra={"project_id": project_id, "error_code": e.code},
            )


async def _session_user(backend: RemoteBackend) -> str | None:
    identity = await backend.auth.get_session()
    return identity.user_id if identity else None
