"""Remote Schemas: PostgREST rows of the two board collections.

Invariants:
    - BoardRow.name falls back to DEFAULT_PROJECT_NAME when null or blank
    - BoardDataRow fields are nullable on the wire; defaults applied by BoardDocument
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from boardsync.core.domain_types import DEFAULT_PROJECT_NAME, ProjectId, ProjectSummary


class _RemoteModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class BoardRow(_RemoteModel):
    """Row of the `boards` collection as selected for the project list."""
    id: str
    name: str | None = None
    created_at: datetime

    @field_validator("name")
    @classmethod
    def default_name(cls, v: str | None) -> str:
        return v if v and v.strip() else DEFAULT_PROJECT_NAME

    def to_summary(self) -> ProjectSummary:
        return ProjectSummary(
            id=ProjectId(self.id),
            name=self.name or DEFAULT_PROJECT_NAME,
            created_at=self.created_at,
        )


class BoardDataRow(_RemoteModel):
    """Row of the `board_data` collection."""
    tasks: list[Any] | None = None
    settings: dict[str, Any] | None = None
    view: str | None = None
    custom_palettes: list[Any] | None = None
