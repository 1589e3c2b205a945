"""Gantt Storage: the accessor surface the board editor UI talks to.

Invariants:
    - Every synchronous getter returns None while remote persistence is disabled
    - Every synchronous setter is a local no-op while disabled
    - Only sign_in, sign_up and save_config return an ActionResult with an
      error; nothing else raises a BoardSyncError to the UI
    - init() applies a config without format checks beyond blank/placeholder;
      save_config() validates fully, persists, then applies
    - Switching to a different config drains pending writes before the
      previous backend is closed
    - start() prefers the config from settings; the saved config is used only
      when settings carry none

Design Decisions:
    - Wires one gate, one background runner and the four services together;
      holds no cache state of its own
    - Auth side effects (list reload, cache clear, observer) are driven by the
      auth client's events through SessionTracker, not repeated here
"""

import functools
import logging
from typing import Any, Mapping

from boardsync.config import Settings, get_settings
from boardsync.core.connection_config import from_mapping, is_usable, normalize_connection
from boardsync.core.domain_types import (
    BoardField, ConnectionConfig, Identity, ProjectId, ProjectSummary,
)
from boardsync.core.errors import (
    ActionResult, BoardSyncError, ConfigurationError, DatabaseError, NotConfiguredError,
)
from boardsync.core.repository_protocols import KeyValueStore
from boardsync.infrastructure.background import BackgroundTaskRunner
from boardsync.infrastructure.remote_backend import create_remote_backend
from boardsync.services.board_content import BoardContentCache
from boardsync.services.board_lifecycle import BoardLifecycleManager
from boardsync.services.capability_gate import BackendFactory, CapabilityGate
from boardsync.services.project_list import ProjectListCache
from boardsync.services.session_tracker import SessionObserver, SessionTracker

logger = logging.getLogger(__name__)

CONFIG_KEY = "gantt-supabase-config"


class GanttStorage:
    """Identity & config bridge plus the cache accessors."""

    def __init__(
        self,
        *,
        config_store: KeyValueStore | None = None,
        backend_factory: BackendFactory | None = None,
        timeout_seconds: float = 10.0,
    ):
        self._store = config_store
        if backend_factory is None:
            backend_factory = functools.partial(
                create_remote_backend,
                storage=config_store,
                timeout_seconds=timeout_seconds,
            )
        self.runner = BackgroundTaskRunner()
        self.gate = CapabilityGate(backend_factory)
        self.projects = ProjectListCache(self.gate, self.runner)
        self.content = BoardContentCache(self.gate, self.runner)
        self.lifecycle = BoardLifecycleManager(self.gate, self.content)
        self.tracker = SessionTracker(self.gate, self.projects, self.runner)

    # ─── Configuration ───────────────────────────────────────────

    async def init(self, config: ConnectionConfig | Mapping[str, Any] | None) -> bool:
        """Apply a connection config. Returns True if a new backend was connected."""
        if config is not None and not isinstance(config, ConnectionConfig):
            config = from_mapping(config)
        if not is_usable(config):
            return False
        if self.gate.is_enabled() and self.gate.config != config:
            # in-flight writes finish against the handle they were spawned on
            await self.runner.drain()
        if not await self.gate.configure(config):
            return False
        backend = self.gate.backend
        self.tracker.attach(backend)
        await backend.auth.initialize()
        return True

    async def save_config(self, url: str | None, anon_key: str | None) -> ActionResult:
        try:
            config = normalize_connection(url, anon_key)
        except ConfigurationError as e:
            logger.warning(f"Rejected remote config: {e.message}", extra={"error_code": e.code})
            return ActionResult(error=e)
        if self._store is None:
            return ActionResult(error=DatabaseError("no local store configured", "write"))
        try:
            await self._store.set(CONFIG_KEY, config.to_dict())
            await self.init(config)
        except BoardSyncError as e:
            logger.warning(f"Saving remote config failed: {e.message}", extra={"error_code": e.code})
            return ActionResult(error=e)
        return ActionResult()

    async def get_saved_config(self) -> ConnectionConfig | None:
        if self._store is None:
            return None
        try:
            raw = await self._store.get(CONFIG_KEY)
        except BoardSyncError as e:
            logger.warning(f"Reading saved remote config failed: {e.message}")
            return None
        return from_mapping(raw) if isinstance(raw, Mapping) else None

    async def start(self, settings: Settings | None = None) -> bool:
        """Apply the startup config: settings first, else the saved one."""
        settings = settings or get_settings()
        configured = from_mapping({
            "url": settings.supabase_url,
            "anon_key": settings.supabase_anon_key,
        })
        if configured is not None:
            return await self.init(configured)
        saved = await self.get_saved_config()
        if saved is not None:
            return await self.init(saved)
        logger.info("No remote config; running local-only")
        return False

    def is_cloud_enabled(self) -> bool:
        return self.gate.is_enabled()

    # ─── Session ─────────────────────────────────────────────────

    async def get_session(self) -> Identity | None:
        if not self.gate.is_enabled():
            return None
        return await self.gate.backend.auth.get_session()

    def on_auth_change(self, callback: SessionObserver | None) -> None:
        self.tracker.observe(callback)

    async def refresh_auth_ui(self) -> None:
        await self.tracker.publish_current()

    async def sign_in(self, email: str, password: str) -> ActionResult:
        if not self.gate.is_enabled():
            return ActionResult(error=NotConfiguredError())
        try:
            session = await self.gate.backend.auth.sign_in_with_password(email, password)
        except BoardSyncError as e:
            logger.warning(f"[auth] {e.message}", extra={"error_code": e.code})
            return ActionResult(error=e)
        return ActionResult(session=session)

    async def sign_up(self, email: str, password: str) -> ActionResult:
        if not self.gate.is_enabled():
            return ActionResult(error=NotConfiguredError())
        try:
            session = await self.gate.backend.auth.sign_up(email, password)
        except BoardSyncError as e:
            logger.warning(f"[auth] {e.message}", extra={"error_code": e.code})
            return ActionResult(error=e)
        return ActionResult(session=session)

    async def sign_out(self) -> None:
        if not self.gate.is_enabled():
            return
        await self.gate.backend.auth.sign_out()
        self.gate.cache.clear()

    # ─── Loading ─────────────────────────────────────────────────

    async def ensure_boards_list_loaded(self) -> None:
        await self.projects.ensure_loaded()

    async def ensure_board_data_loaded(self, project_id: ProjectId | None) -> None:
        await self.content.ensure_loaded(project_id)

    # ─── Project list ────────────────────────────────────────────

    def load_projects_list(self) -> list[ProjectSummary] | None:
        return self.projects.read()

    def save_projects_list(self, items: list[ProjectSummary]) -> None:
        self.projects.write(items)

    # ─── Board document fields ───────────────────────────────────

    def load_tasks(self, project_id: ProjectId | None) -> list | None:
        return self.content.read(project_id, BoardField.TASKS)

    def save_tasks(self, project_id: ProjectId | None, tasks: list) -> None:
        self.content.write(project_id, BoardField.TASKS, tasks)

    def load_settings(self, project_id: ProjectId | None) -> dict | None:
        return self.content.read(project_id, BoardField.SETTINGS)

    def save_settings(self, project_id: ProjectId | None, settings: dict) -> None:
        self.content.write(project_id, BoardField.SETTINGS, settings)

    def load_view(self, project_id: ProjectId | None) -> str | None:
        return self.content.read(project_id, BoardField.VIEW)

    def save_view(self, project_id: ProjectId | None, view: str) -> None:
        self.content.write(project_id, BoardField.VIEW, view)

    def load_custom_palettes(self, project_id: ProjectId | None) -> list | None:
        return self.content.read(project_id, BoardField.CUSTOM_PALETTES)

    def save_custom_palettes(self, project_id: ProjectId | None, palettes: list) -> None:
        self.content.write(project_id, BoardField.CUSTOM_PALETTES, palettes)

    # ─── Board lifecycle ─────────────────────────────────────────

    async def create_board(self, name: str | None) -> ProjectId | None:
        return await self.lifecycle.create(name)

    async def duplicate_board(
        self, source_id: ProjectId | None, new_name: str | None,
    ) -> ProjectId | None:
        return await self.lifecycle.duplicate(source_id, new_name)

    async def delete_board(self, project_id: ProjectId | None) -> None:
        await self.lifecycle.delete(project_id)

    # ─── Shutdown ────────────────────────────────────────────────

    async def drain(self) -> None:
        """Wait for every pending background write."""
        await self.runner.drain()

    async def aclose(self) -> None:
        await self.runner.drain()
        await self.gate.disable()
        if self._store is not None:
            await self._store.aclose()
