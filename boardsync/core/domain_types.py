"""Domain Types: rich types for projects, board documents, identities and config.

Invariants:
    - ProjectId wraps the backend's opaque id string; never parsed or generated locally
    - Every BoardDocument field has a neutral default ([], {}, "default", [])
    - ProjectSummary.created_at is always timezone-aware (UTC)
    - AuthEvent values match the event names emitted by the auth service

Design Decisions:
    - NewType over dataclass wrappers for ids: zero runtime cost
    - str Enums: serialize to JSON without custom encoders
    - BoardDocument.clone() is an explicit structural copy of the known shape,
      not a serialize/deserialize round trip
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NewType


# ─── Identity Types ──────────────────────────────────────────────

ProjectId = NewType("ProjectId", str)
UserId = NewType("UserId", str)

DEFAULT_PROJECT_NAME = "Untitled project"
DEFAULT_VIEW = "default"


# ─── Enums ───────────────────────────────────────────────────────

class AuthEvent(str, Enum):
    """Auth state transitions published by the auth service."""
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    SIGNED_OUT = "SIGNED_OUT"


class BoardField(str, Enum):
    """The four independently writable fields of a board document."""
    TASKS = "tasks"
    SETTINGS = "settings"
    VIEW = "view"
    CUSTOM_PALETTES = "custom_palettes"


# Events after which the signed-in user's project list is reloaded
SESSION_ESTABLISHED_EVENTS = frozenset({
    AuthEvent.INITIAL_SESSION,
    AuthEvent.SIGNED_IN,
    AuthEvent.TOKEN_REFRESHED,
})


# ─── Value Types ─────────────────────────────────────────────────

@dataclass
class Identity:
    """Authenticated principal as handed out by the auth service."""
    user_id: UserId
    access_token: str
    refresh_token: str | None = None
    email: str | None = None
    expires_at: int | None = None   # epoch seconds


@dataclass
class ProjectSummary:
    """One entry of the project list."""
    id: ProjectId
    name: str = DEFAULT_PROJECT_NAME
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


@dataclass
class BoardDocument:
    """Full mutable content of one board."""
    tasks: list = field(default_factory=list)
    settings: dict = field(default_factory=dict)
    view: str = DEFAULT_VIEW
    custom_palettes: list = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any] | None) -> "BoardDocument":
        """Build from a board_data row; null or missing fields become defaults."""
        row = row or {}
        return cls(
            tasks=row.get("tasks") or [],
            settings=row.get("settings") or {},
            view=row.get("view") or DEFAULT_VIEW,
            custom_palettes=row.get("custom_palettes") or [],
        )

    def get(self, board_field: BoardField) -> Any:
        return getattr(self, board_field.value)

    def set(self, board_field: BoardField, value: Any) -> None:
        setattr(self, board_field.value, value)

    def clone(self) -> "BoardDocument":
        """Independent copy: nested task/settings/palette records are not shared."""
        return BoardDocument(
            tasks=[copy.deepcopy(task) for task in self.tasks or []],
            settings=copy.deepcopy(self.settings or {}),
            view=self.view or DEFAULT_VIEW,
            custom_palettes=[
                copy.deepcopy(palette) for palette in self.custom_palettes or []
            ],
        )

    def to_row(self, project_id: ProjectId, updated_at: datetime) -> dict[str, Any]:
        """Complete board_data payload (all four fields, never a partial patch)."""
        return {
            "board_id": project_id,
            "tasks": self.tasks,
            "settings": self.settings,
            "view": self.view,
            "custom_palettes": self.custom_palettes,
            "updated_at": updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ConnectionConfig:
    """Remote backend connection descriptor (endpoint URL + anon access key)."""
    url: str
    anon_key: str

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "anon_key": self.anon_key}

    @property
    def project_ref(self) -> str:
        """Subdomain of the endpoint, e.g. 'abcd' for https://abcd.supabase.co."""
        host = self.url.split("://", 1)[-1].split("/", 1)[0]
        return host.split(".", 1)[0]
