"""Supabase Remote Backend: supabase-py AsyncClient behind the RemoteBackend protocol.

Invariants:
    - One httpx.AsyncClient per backend, shared by auth and PostgREST, closed by aclose()
    - Every table request first asks auth for the session, so an expired
      access token is refreshed before the request goes out
    - boards rows are listed for one owner, ordered by created_at ascending
    - board_data is keyed by board_id; upsert merges on that key
    - Deleting a board relies on the remote cascade to drop its board_data row
    - PGRST116 maps to RowNotFoundError; any other PostgREST or transport
      failure maps to RemoteStoreError

Design Decisions:
    - Repositories translate rows into domain types so services never see JSON
    - create_remote_backend() is the default async factory handed to
      CapabilityGate; tests inject their own factory or http client instead
"""

import logging
from datetime import datetime
from typing import Any

import httpx
from postgrest import APIError, AsyncRequestBuilder
from postgrest.types import ReturnMethod
from pydantic import ValidationError
from supabase import AsyncClient, AsyncClientOptions, acreate_client
from supabase_auth import AsyncMemoryStorage, AsyncSupportedStorage

from boardsync.core.domain_types import (
    BoardDocument, ConnectionConfig, ProjectId, ProjectSummary, UserId,
)
from boardsync.core.errors import RemoteStoreError, RowNotFoundError
from boardsync.core.repository_protocols import KeyValueStore
from boardsync.infrastructure.auth_client import KeyValueAuthStorage, SupabaseAuth
from boardsync.schemas.remote import BoardDataRow, BoardRow

logger = logging.getLogger(__name__)

BOARDS_TABLE = "boards"
BOARD_DATA_TABLE = "board_data"
BOARD_DATA_COLUMNS = "tasks, settings, view, custom_palettes"

# PostgREST: "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"


class _Collection:
    """One remote collection: builds authenticated queries and maps their failures."""

    def __init__(self, client: AsyncClient, auth: SupabaseAuth, name: str):
        self._client = client
        self._auth = auth
        self.name = name

    async def query(self) -> AsyncRequestBuilder:
        await self._auth.get_session()
        return self._client.table(self.name)

    async def execute(self, query: Any, operation: str, key: str = "") -> Any:
        try:
            return await query.execute()
        except APIError as e:
            if e.code == NO_ROWS_CODE:
                raise RowNotFoundError(self.name, key)
            # bodies that are not PostgREST errors carry the HTTP status as code
            raise RemoteStoreError(
                e.message or str(e), operation, self.name,
                status_code=e.code if isinstance(e.code, int) else None,
                remote_code=str(e.code) if e.code is not None else None,
            )
        except (httpx.HTTPError, RuntimeError) as e:
            # RuntimeError: the http client was closed under an in-flight write
            raise RemoteStoreError(str(e) or type(e).__name__, operation, self.name)


class SupabaseBoardRepository:
    """BoardRepository over the `boards` collection."""

    def __init__(self, collection: _Collection):
        self._boards = collection

    async def list_for_owner(self, owner_id: UserId) -> list[ProjectSummary]:
        query = (
            (await self._boards.query())
            .select("id, name, created_at")
            .eq("owner_id", owner_id)
            .order("created_at")
        )
        response = await self._boards.execute(query, "select")
        try:
            return [BoardRow.model_validate(row).to_summary() for row in response.data]
        except ValidationError as e:
            raise RemoteStoreError(
                f"malformed row ({e.error_count()} error(s))", "select", BOARDS_TABLE,
            )

    async def create(self, owner_id: UserId, name: str) -> ProjectId:
        query = (await self._boards.query()).insert({"owner_id": owner_id, "name": name})
        response = await self._boards.execute(query, "insert")
        rows = response.data or []
        if not rows or not isinstance(rows[0], dict) or not rows[0].get("id"):
            raise RemoteStoreError("insert returned no id", "insert", BOARDS_TABLE)
        return ProjectId(str(rows[0]["id"]))

    async def rename(self, project_id: ProjectId, name: str) -> None:
        query = (
            (await self._boards.query())
            .update({"name": name}, returning=ReturnMethod.minimal)
            .eq("id", project_id)
        )
        await self._boards.execute(query, "update")

    async def delete(self, project_id: ProjectId) -> None:
        query = (
            (await self._boards.query())
            .delete(returning=ReturnMethod.minimal)
            .eq("id", project_id)
        )
        await self._boards.execute(query, "delete")


class SupabaseBoardDataRepository:
    """BoardDataRepository over the `board_data` collection."""

    def __init__(self, collection: _Collection):
        self._board_data = collection

    async def get(self, project_id: ProjectId) -> BoardDocument:
        query = (
            (await self._board_data.query())
            .select(BOARD_DATA_COLUMNS)
            .eq("board_id", project_id)
            .single()
        )
        response = await self._board_data.execute(query, "select", key=project_id)
        try:
            parsed = BoardDataRow.model_validate(response.data)
        except ValidationError as e:
            raise RemoteStoreError(
                f"malformed row ({e.error_count()} error(s))", "select", BOARD_DATA_TABLE,
            )
        return BoardDocument.from_row(parsed.model_dump())

    async def insert(self, project_id: ProjectId, doc: BoardDocument) -> None:
        query = (await self._board_data.query()).insert({
            "board_id": project_id,
            "tasks": doc.tasks,
            "settings": doc.settings,
            "view": doc.view,
            "custom_palettes": doc.custom_palettes,
        }, returning=ReturnMethod.minimal)
        await self._board_data.execute(query, "insert")

    async def upsert(
        self, project_id: ProjectId, doc: BoardDocument, updated_at: datetime,
    ) -> None:
        query = (await self._board_data.query()).upsert(
            doc.to_row(project_id, updated_at),
            on_conflict="board_id",
            returning=ReturnMethod.minimal,
        )
        await self._board_data.execute(query, "upsert")


class SupabaseBackend:
    """RemoteBackend handle: auth service plus the two repositories."""

    def __init__(
        self,
        config: ConnectionConfig,
        client: AsyncClient,
        http: httpx.AsyncClient,
        auth_storage: AsyncSupportedStorage,
    ):
        self.config = config
        self._client = client
        self._http = http
        self.auth = SupabaseAuth(client.auth, auth_storage)
        self.boards = SupabaseBoardRepository(_Collection(client, self.auth, BOARDS_TABLE))
        self.board_data = SupabaseBoardDataRepository(
            _Collection(client, self.auth, BOARD_DATA_TABLE),
        )

    async def aclose(self) -> None:
        await self._http.aclose()


async def create_remote_backend(
    config: ConnectionConfig,
    *,
    storage: KeyValueStore | None = None,
    timeout_seconds: float = 10.0,
    http_client: httpx.AsyncClient | None = None,
) -> SupabaseBackend:
    """Build a connected backend; the session persists in `storage` when given."""
    logger.info(f"Connecting to remote backend {config.url}")
    http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
    if storage is not None:
        auth_storage = KeyValueAuthStorage(storage, f"sb-{config.project_ref}")
    else:
        auth_storage = AsyncMemoryStorage()
    client = await acreate_client(
        config.url.rstrip("/"),
        config.anon_key,
        options=AsyncClientOptions(
            storage=auth_storage,
            httpx_client=http,
            auto_refresh_token=False,
        ),
    )
    return SupabaseBackend(config, client, http, auth_storage)
