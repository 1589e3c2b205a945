"""Board Lifecycle Manager: create, duplicate and delete boards across both caches.

Invariants:
    - create() returns None (caches untouched) if disabled, signed out, or the
      boards insert fails
    - A created board is in the project list and has a default document in the
      cache before create() returns
    - duplicate() returns None only when create() did; the copy's nested data is
      never shared with the source
    - delete() removes the id from both caches even if the remote delete fails

Design Decisions:
    - A failed board_data insert after a successful boards insert is logged and
      accepted: the absent row reads back as defaults and the first write upserts it
"""

import logging

from boardsync.core.domain_types import BoardDocument, DEFAULT_PROJECT_NAME, ProjectId
from boardsync.core.errors import BoardSyncError
from boardsync.services.board_content import BoardContentCache
from boardsync.services.capability_gate import CapabilityGate

logger = logging.getLogger(__name__)


class BoardLifecycleManager:
    """Coordinates identity, project list and document cache for board CRUD."""

    def __init__(self, gate: CapabilityGate, content: BoardContentCache):
        self._gate = gate
        self._content = content

    async def create(self, name: str | None) -> ProjectId | None:
        if not self._gate.is_enabled():
            return None
        backend = self._gate.backend
        identity = await backend.auth.get_session()
        if identity is None:
            return None
        name = name or DEFAULT_PROJECT_NAME
        try:
            project_id = await backend.boards.create(identity.user_id, name)
        except BoardSyncError as e:
            logger.warning(
                f"Create board failed: {e.message}",
                extra={"error_code": e.code, "collection": "boards"},
            )
            return None
        try:
            await backend.board_data.insert(project_id, BoardDocument())
        except BoardSyncError as e:
            logger.warning(
                f"Board data row not created; it will be written on first save: {e.message}",
                extra={"project_id": project_id, "error_code": e.code},
            )
        cache = self._gate.cache
        cache.put_document(project_id, BoardDocument())
        cache.append_project(project_id, name)
        logger.info(f"Created board {project_id}", extra={"project_id": project_id})
        return project_id

    async def duplicate(
        self, source_id: ProjectId | None, new_name: str | None,
    ) -> ProjectId | None:
        if not self._gate.is_enabled():
            return None
        await self._content.ensure_loaded(source_id)
        source = self._gate.cache.get_document(source_id) if source_id else None
        project_id = await self.create(new_name)
        if project_id is None or source is None:
            return project_id
        cache = self._gate.cache
        cache.put_document(project_id, source.clone())
        self._content.persist(project_id)
        if new_name:
            cache.rename_project(project_id, new_name)
        return project_id

    async def delete(self, project_id: ProjectId | None) -> None:
        if not self._gate.is_enabled() or not project_id:
            return
        backend = self._gate.backend
        try:
            await backend.boards.delete(project_id)
        except BoardSyncError as e:
            logger.warning(
                f"Delete board failed: {e.message}",
                extra={"project_id": project_id, "error_code": e.code},
            )
        cache = self._gate.cache
        cache.drop_document(project_id)
        cache.remove_project(project_id)
