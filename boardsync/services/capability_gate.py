"""Capability Gate: decides whether remote persistence is active.

Invariants:
    - is_enabled() is pure, synchronous and side-effect free
    - Enabled iff a backend handle was built from a usable (non-blank,
      non-placeholder) ConnectionConfig
    - Re-applying an identical config while enabled is a no-op
    - The cache is cleared whenever the backend handle changes or goes away

Design Decisions:
    - The gate owns the BoardCache: both share one lifecycle
    - Backend construction goes through an injected async factory
    - Writes already spawned against the previous handle are drained by the
      caller before configure() or disable() closes it
"""

import logging
from typing import Awaitable, Callable

from boardsync.core.board_cache import BoardCache
from boardsync.core.connection_config import is_usable
from boardsync.core.domain_types import ConnectionConfig
from boardsync.core.errors import NotConfiguredError
from boardsync.core.repository_protocols import RemoteBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[ConnectionConfig], Awaitable[RemoteBackend]]


class CapabilityGate:
    """Holds the remote backend handle (or None) and the session cache."""

    def __init__(self, backend_factory: BackendFactory):
        self._backend_factory = backend_factory
        self._backend: RemoteBackend | None = None
        self.config: ConnectionConfig | None = None
        self.cache = BoardCache()

    def is_enabled(self) -> bool:
        return self._backend is not None

    def is_current(self, backend: RemoteBackend) -> bool:
        """True if `backend` is still the active handle (not replaced or disabled)."""
        return self._backend is backend

    @property
    def backend(self) -> RemoteBackend:
        if self._backend is None:
            raise NotConfiguredError()
        return self._backend

    async def configure(self, config: ConnectionConfig | None) -> bool:
        """Build a backend for `config`. Returns True only if a new handle was built."""
        if not is_usable(config):
            logger.info("Remote config missing or placeholder; staying local-only")
            return False
        if self._backend is not None and self.config == config:
            return False
        previous = self._backend
        self._backend = await self._backend_factory(config)
        self.config = config
        self.cache.clear()
        if previous is not None:
            await previous.aclose()
        logger.info(f"Remote persistence enabled for {config.url}")
        return True

    async def disable(self) -> None:
        previous = self._backend
        self._backend = None
        self.config = None
        self.cache.clear()
        if previous is not None:
            await previous.aclose()
            logger.info("Remote persistence disabled")
