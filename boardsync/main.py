"""boardsync entry point: builds a ready-to-use GanttStorage from Settings.

Invariants:
    - Logging configured before anything logs
    - The startup config (settings or saved) is applied before the storage is returned
"""

import logging

from boardsync.config import Settings, get_settings
from boardsync.infrastructure.kv_store import SqlKeyValueStore
from boardsync.infrastructure.observability import setup_logging
from boardsync.services.storage import GanttStorage

logger = logging.getLogger(__name__)


async def create_storage(
    settings: Settings | None = None, *, configure_logging: bool = True,
) -> GanttStorage:
    """Open the local store, wire the services, apply the startup config."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)
    store = None
    if settings.config_store_url:
        store = await SqlKeyValueStore.open(settings.config_store_url)
    storage = GanttStorage(
        config_store=store,
        timeout_seconds=settings.request_timeout_seconds,
    )
    enabled = await storage.start(settings)
    logger.info(f"boardsync started (cloud {'enabled' if enabled else 'disabled'})")
    return storage
