"""Board Cache: the in-memory project list and per-project document map.

Invariants:
    - One BoardCache per enabled backend; a new one (or clear()) on every reconfigure
    - projects is only ever replaced wholesale or mutated in place by the methods below
    - documents never holds a partially populated BoardDocument
    - Every method is synchronous: no await point inside a cache mutation

Design Decisions:
    - Plain object owned by CapabilityGate and passed to services, not module globals
    - clear() on sign-out drops both structures so the next identity starts empty
"""

from datetime import datetime, timezone

from boardsync.core.domain_types import (
    BoardDocument, ProjectId, ProjectSummary,
)


class BoardCache:
    """Session-scoped cache of project summaries and board documents."""

    def __init__(self):
        self.projects: list[ProjectSummary] = []
        self.documents: dict[ProjectId, BoardDocument] = {}

    # ─── Project list ────────────────────────────────────────────

    def replace_projects(self, projects: list[ProjectSummary]) -> None:
        self.projects = list(projects)

    def append_project(
        self, project_id: ProjectId, name: str, created_at: datetime | None = None,
    ) -> ProjectSummary:
        summary = ProjectSummary(
            id=project_id,
            name=name,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.projects.append(summary)
        return summary

    def find_project(self, project_id: ProjectId) -> ProjectSummary | None:
        for summary in self.projects:
            if summary.id == project_id:
                return summary
        return None

    def rename_project(self, project_id: ProjectId, name: str) -> bool:
        summary = self.find_project(project_id)
        if summary is None:
            return False
        summary.name = name
        return True

    def remove_project(self, project_id: ProjectId) -> None:
        self.projects = [p for p in self.projects if p.id != project_id]

    # ─── Documents ───────────────────────────────────────────────

    def has_document(self, project_id: ProjectId) -> bool:
        return project_id in self.documents

    def get_document(self, project_id: ProjectId) -> BoardDocument | None:
        return self.documents.get(project_id)

    def ensure_document(self, project_id: ProjectId) -> BoardDocument:
        """Return the cached document, creating a defaulted one if absent."""
        doc = self.documents.get(project_id)
        if doc is None:
            doc = BoardDocument()
            self.documents[project_id] = doc
        return doc

    def put_document(self, project_id: ProjectId, doc: BoardDocument) -> None:
        self.documents[project_id] = doc

    def drop_document(self, project_id: ProjectId) -> None:
        self.documents.pop(project_id, None)

    def clear_documents(self) -> None:
        self.documents = {}

    def clear(self) -> None:
        self.projects = []
        self.documents = {}
