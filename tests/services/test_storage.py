"""Gantt Storage: accessor surface end to end over the fake backend.

Tests cover:
    - Disabled mode: every getter None, every setter a no-op, auth actions refused
    - Sign-in/sign-up results as ActionResult, never raised
    - Sign-out clears every cached list entry and document
    - The create / duplicate / delete walkthrough of one editing session
    - aclose() drains pending writes and releases backend and store
    - Switching to another config lets in-flight writes finish on the old backend
"""

import asyncio

import pytest

from boardsync.core.domain_types import ConnectionConfig, ProjectId
from boardsync.core.errors import AuthenticationError, NotConfiguredError
from boardsync.services.storage import GanttStorage

from tests.services.fake_backend import ALICE, CONFIG, FakeBackend


# ─── Disabled mode ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_disabled_storage_is_inert(disabled_storage, backend):
    pid = ProjectId("p1")
    disabled_storage.save_tasks(pid, [{"task": "A"}])
    disabled_storage.save_settings(pid, {"zoom": 1})
    disabled_storage.save_view(pid, "timeline")
    disabled_storage.save_custom_palettes(pid, [{"name": "warm"}])
    await disabled_storage.ensure_board_data_loaded(pid)
    await disabled_storage.ensure_boards_list_loaded()
    await disabled_storage.drain()

    assert not disabled_storage.is_cloud_enabled()
    assert disabled_storage.load_projects_list() is None
    assert disabled_storage.load_tasks(pid) is None
    assert disabled_storage.load_settings(pid) is None
    assert disabled_storage.load_view(pid) is None
    assert disabled_storage.load_custom_palettes(pid) is None
    assert await disabled_storage.get_session() is None
    assert backend.board_data.upserts == []


@pytest.mark.asyncio
async def test_disabled_auth_actions_report_not_configured(disabled_storage):
    for result in (
        await disabled_storage.sign_in(ALICE[0], ALICE[1]),
        await disabled_storage.sign_up("new@example.com", "pw"),
    ):
        assert not result.ok
        assert isinstance(result.error, NotConfiguredError)
        assert result.error.message == "Supabase not configured"
    await disabled_storage.sign_out()


@pytest.mark.asyncio
async def test_placeholder_init_stays_disabled(disabled_storage):
    assert not await disabled_storage.init({
        "url": "https://YOUR_PROJECT_REF.supabase.co", "anonKey": "YOUR_ANON_KEY",
    })
    assert not disabled_storage.is_cloud_enabled()


@pytest.mark.asyncio
async def test_init_twice_with_same_config_is_noop(storage, backend):
    assert not await storage.init(CONFIG)
    assert len(backend.auth.listeners) == 1


# ─── Auth actions ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_sign_in_returns_session(storage):
    result = await storage.sign_in(ALICE[0], ALICE[1])
    assert result.ok
    assert result.session.user_id == "user-a"
    assert (await storage.get_session()).email == ALICE[0]


@pytest.mark.asyncio
async def test_bad_password_is_returned_not_raised(storage):
    result = await storage.sign_in(ALICE[0], "wrong")
    assert not result.ok
    assert isinstance(result.error, AuthenticationError)
    assert result.error.message == "Invalid login credentials"
    assert await storage.get_session() is None


@pytest.mark.asyncio
async def test_sign_up_signs_in_when_no_confirmation(storage):
    result = await storage.sign_up("new@example.com", "pw")
    assert result.ok
    assert result.session is not None
    assert storage.load_projects_list() == []


@pytest.mark.asyncio
async def test_sign_up_awaiting_confirmation(storage, backend):
    backend.auth.require_confirmation = True
    result = await storage.sign_up("new@example.com", "pw")
    assert result.ok
    assert result.session is None
    assert await storage.get_session() is None


@pytest.mark.asyncio
async def test_sign_up_existing_email_is_an_error(storage):
    result = await storage.sign_up(ALICE[0], "pw")
    assert isinstance(result.error, AuthenticationError)


@pytest.mark.asyncio
async def test_sign_out_clears_everything(signed_in):
    first = await signed_in.create_board("One")
    second = await signed_in.create_board("Two")
    signed_in.save_tasks(first, [{"task": "A"}])
    await signed_in.ensure_board_data_loaded(second)

    await signed_in.sign_out()

    assert signed_in.load_projects_list() == []
    assert signed_in.load_tasks(first) is None
    assert signed_in.load_tasks(second) is None
    assert await signed_in.get_session() is None
    assert signed_in.is_cloud_enabled()


# ─── Editing session walkthrough ─────────────────────────────────

@pytest.mark.asyncio
async def test_create_duplicate_delete_walkthrough(signed_in, backend):
    x = await signed_in.create_board("Launch Plan")
    assert [(p.id, p.name) for p in signed_in.load_projects_list()] == [(x, "Launch Plan")]
    assert signed_in.load_tasks(x) == []

    signed_in.save_tasks(x, [{"task": "A"}])
    y = await signed_in.duplicate_board(x, "Launch Plan Copy")
    assert y != x
    assert signed_in.load_tasks(y) == [{"task": "A"}]
    signed_in.load_tasks(y).append({"task": "B"})
    assert signed_in.load_tasks(x) == [{"task": "A"}]

    await signed_in.delete_board(x)
    assert x not in [p.id for p in signed_in.load_projects_list()]
    assert signed_in.load_tasks(x) is None

    signed_in.save_view(y, "timeline")
    assert signed_in.load_view(y) == "timeline"

    await signed_in.drain()
    assert backend.board_data.rows[y].view == "timeline"
    assert x not in backend.boards.rows


@pytest.mark.asyncio
async def test_lists_are_scoped_per_user(signed_in, backend):
    await signed_in.create_board("Alice's")
    await signed_in.sign_out()
    await signed_in.sign_in("bob@example.com", "battery staple")
    assert signed_in.load_projects_list() == []


# ─── Shutdown ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_aclose_drains_and_releases(signed_in, backend, kv_store):
    signed_in.save_view(ProjectId("p1"), "timeline")

    await signed_in.aclose()

    assert backend.board_data.rows[ProjectId("p1")].view == "timeline"
    assert backend.closed
    assert kv_store.closed
    assert not signed_in.is_cloud_enabled()
    assert signed_in.load_projects_list() is None


@pytest.mark.asyncio
async def test_switching_config_finishes_in_flight_writes_first(kv_store):
    first, second = FakeBackend(), FakeBackend()
    first.auth.register(*ALICE)
    built = iter([first, second])

    async def factory(config):
        return next(built)

    storage = GanttStorage(config_store=kv_store, backend_factory=factory)
    await storage.init(CONFIG)
    await storage.sign_in(ALICE[0], ALICE[1])
    release = asyncio.Event()
    first.board_data.hold["upsert"] = release
    storage.save_tasks(ProjectId("p1"), [{"task": "A"}])

    other = ConnectionConfig(url="https://efgh5678.supabase.co", anon_key="other")
    switching = asyncio.create_task(storage.init(other))
    await asyncio.sleep(0)
    assert not first.closed

    release.set()
    assert await switching
    assert first.closed
    assert first.board_data.rows[ProjectId("p1")].tasks == [{"task": "A"}]
    assert storage.gate.backend is second
    await storage.aclose()
