"""Session Tracker: turns auth state events into cache resets and one observer callback.

Invariants:
    - At most one observer; observe() replaces the previous one
    - Signed-in / restored / refreshed identity: the project list is reloaded
      before the observer hears about it
    - Signed out: project list and every cached document are cleared
      synchronously before the observer is called with None
    - A different user signing in without a sign-out in between drops the
      previous user's cached documents first
    - Observer and list-load failures are logged, never propagated into the auth client

Design Decisions:
    - Single observer slot rather than a subscriber list: one UI consumes it
    - Observer may be sync or async; awaitable results are awaited
"""

import inspect
import logging
from typing import Any, Callable

from boardsync.core.domain_types import (
    AuthEvent, Identity, SESSION_ESTABLISHED_EVENTS, UserId,
)
from boardsync.core.repository_protocols import RemoteBackend
from boardsync.infrastructure.background import BackgroundTaskRunner
from boardsync.services.capability_gate import CapabilityGate
from boardsync.services.project_list import ProjectListCache

logger = logging.getLogger(__name__)

SessionObserver = Callable[[Identity | None], Any]


class SessionTracker:
    """Republishes auth transitions as a simplified identity signal."""

    def __init__(
        self,
        gate: CapabilityGate,
        project_list: ProjectListCache,
        runner: BackgroundTaskRunner,
    ):
        self._gate = gate
        self._project_list = project_list
        self._runner = runner
        self._observer: SessionObserver | None = None
        self._last_user_id: UserId | None = None

    def observe(self, callback: SessionObserver | None) -> None:
        """Register the observer and, when enabled, notify it of the current session."""
        self._observer = callback
        if callback is not None and self._gate.is_enabled():
            self._runner.spawn(self.publish_current(), "notify session observer")

    def attach(self, backend: RemoteBackend) -> None:
        """Subscribe to a freshly built backend's auth events."""
        self._last_user_id = None
        backend.auth.on_auth_state_change(self.handle_auth_event)

    async def handle_auth_event(self, event: AuthEvent, identity: Identity | None) -> None:
        logger.debug(f"Auth event {event.value}", extra={"auth_event": event.value})
        if event == AuthEvent.SIGNED_OUT:
            self._gate.cache.clear()
            self._last_user_id = None
        elif event in SESSION_ESTABLISHED_EVENTS and identity is not None:
            if self._last_user_id is not None and identity.user_id != self._last_user_id:
                self._gate.cache.clear_documents()
            self._last_user_id = identity.user_id
            try:
                await self._project_list.ensure_loaded()
            except Exception as e:
                logger.warning(f"Boards list load failed: {e}", exc_info=True)
        await self._notify(identity)

    async def publish_current(self) -> None:
        identity = None
        if self._gate.is_enabled():
            identity = await self._gate.backend.auth.get_session()
        await self._notify(identity)

    async def _notify(self, identity: Identity | None) -> None:
        observer = self._observer
        if observer is None:
            return
        try:
            result = observer(identity)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Session observer failed: {e}", exc_info=True)
