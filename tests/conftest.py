"""Root conftest: shared test configuration."""

import os

# Ensure tests never pick up a developer's real backend or local store
os.environ["BOARDSYNC_SUPABASE_URL"] = ""
os.environ["BOARDSYNC_SUPABASE_ANON_KEY"] = ""
os.environ.setdefault("BOARDSYNC_CONFIG_STORE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BOARDSYNC_LOG_FORMAT", "text")
