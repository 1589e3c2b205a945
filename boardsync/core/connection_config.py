"""Connection Config: validation and normalization of the remote connection descriptor.

Invariants:
    - url and anon key are trimmed before any check
    - Placeholder values from the example config are never accepted
    - A recognizable dashboard page URL is rewritten to its API endpoint
    - normalize_connection() returns a config whose url matches API_URL_PATTERN

Design Decisions:
    - Two levels of checking: is_usable() gates init() silently (bad config means
      local-only mode), normalize_connection() raises a descriptive
      ConfigurationError for save_config()
"""

import re
from typing import Any, Mapping

from boardsync.core.domain_types import ConnectionConfig
from boardsync.core.errors import ConfigurationError

PLACEHOLDER_URL_MARKER = "YOUR_PROJECT"
PLACEHOLDER_KEY_MARKER = "YOUR_ANON"

API_URL_PATTERN = re.compile(r"^https://[^.]+\.supabase\.co/?$", re.IGNORECASE)
DASHBOARD_MARKER = "supabase.com/dashboard"
DASHBOARD_PROJECT_PATTERN = re.compile(r"/project/([a-z0-9]+)", re.IGNORECASE)


def _has_placeholder(url: str, anon_key: str) -> bool:
    return PLACEHOLDER_URL_MARKER in url or PLACEHOLDER_KEY_MARKER in anon_key


def from_mapping(data: Mapping[str, Any] | None) -> ConnectionConfig | None:
    """Read {url, anon_key} (or the camelCase anonKey) into a trimmed config."""
    if not data:
        return None
    url = data.get("url")
    anon_key = data.get("anon_key") or data.get("anonKey")
    if not url or not anon_key:
        return None
    return ConnectionConfig(url=str(url).strip(), anon_key=str(anon_key).strip())


def is_usable(config: ConnectionConfig | None) -> bool:
    """Minimal check applied on init: present, non-blank, not a placeholder."""
    if config is None or not config.url or not config.anon_key:
        return False
    return not _has_placeholder(config.url, config.anon_key)


def rewrite_dashboard_url(url: str) -> str:
    """Map a dashboard page URL to https://<ref>.supabase.co, or raise."""
    match = DASHBOARD_PROJECT_PATTERN.search(url)
    if not match:
        raise ConfigurationError(
            "Use the API URL from Settings → API (e.g. https://xxxxx.supabase.co), "
            "not the dashboard page URL.",
            field="url",
        )
    return f"https://{match.group(1)}.supabase.co"


def normalize_connection(url: str | None, anon_key: str | None) -> ConnectionConfig:
    """Full validation used when the user saves a configuration."""
    url = str(url or "").strip()
    anon_key = str(anon_key or "").strip()
    if not url or not anon_key:
        raise ConfigurationError("URL and anon key are required")
    if _has_placeholder(url, anon_key):
        raise ConfigurationError(
            "Replace placeholders with your Supabase project URL and anon key",
        )
    if DASHBOARD_MARKER in url:
        url = rewrite_dashboard_url(url)
    if not API_URL_PATTERN.match(url):
        raise ConfigurationError(
            "Project URL must be like https://xxxxx.supabase.co "
            "(from Supabase Dashboard → Settings → API)",
            field="url",
        )
    return ConnectionConfig(url=url, anon_key=anon_key)
