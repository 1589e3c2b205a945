"""Boundary Protocols: contracts between the cache services and the remote backend.

Invariants:
    - Services NEVER import a concrete backend; they receive a RemoteBackend
    - All IO operations accessed through Protocol types
    - Repository methods raise BoardSyncError subclasses only
      (RemoteStoreError, RowNotFoundError, AuthenticationError)

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - One repository per remote collection: boards and board_data
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Protocol

from boardsync.core.domain_types import (
    AuthEvent, BoardDocument, Identity, ProjectId, ProjectSummary, UserId,
)

AuthListener = Callable[[AuthEvent, Identity | None], Awaitable[None]]


class AuthService(Protocol):
    """Contract for the identity service: implemented by infrastructure/auth_client.py."""
    async def initialize(self) -> Identity | None: ...
    async def get_session(self) -> Identity | None: ...
    async def sign_in_with_password(self, email: str, password: str) -> Identity: ...
    async def sign_up(self, email: str, password: str) -> Identity | None: ...
    async def sign_out(self) -> None: ...
    def on_auth_state_change(self, listener: AuthListener) -> None: ...


class BoardRepository(Protocol):
    """Contract for the `boards` collection (one summary row per project)."""
    async def list_for_owner(self, owner_id: UserId) -> list[ProjectSummary]: ...
    async def create(self, owner_id: UserId, name: str) -> ProjectId: ...
    async def rename(self, project_id: ProjectId, name: str) -> None: ...
    async def delete(self, project_id: ProjectId) -> None: ...


class BoardDataRepository(Protocol):
    """Contract for the `board_data` collection (one document row per project)."""
    async def get(self, project_id: ProjectId) -> BoardDocument: ...
    async def insert(self, project_id: ProjectId, doc: BoardDocument) -> None: ...
    async def upsert(
        self, project_id: ProjectId, doc: BoardDocument, updated_at: datetime,
    ) -> None: ...


class RemoteBackend(Protocol):
    """Handle built from a valid connection config."""
    auth: AuthService
    boards: BoardRepository
    board_data: BoardDataRepository

    async def aclose(self) -> None: ...


class KeyValueStore(Protocol):
    """Local durable key-value store for the connection config and auth session."""
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def aclose(self) -> None: ...