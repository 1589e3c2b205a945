"""Board Content Cache: lazy loads, synchronous writes, whole-document upserts.

Tests cover:
    - Disabled or empty-id access reads None and writes nothing
    - ensure_loaded() leaves every field readable whatever the remote outcome
    - ensure_loaded() fetches at most once per id
    - write() is visible immediately; each write upserts the full document snapshot
    - Failed upserts are logged, the cache keeps the local value
    - A slow fetch never clobbers a local write or leaks across a sign-out
"""

import asyncio
import logging

import pytest

from boardsync.core.domain_types import BoardDocument, BoardField, ProjectId

from tests.services.fake_backend import remote_error

P1 = ProjectId("board-1")


# ─── Disabled / unloaded ─────────────────────────────────────────

@pytest.mark.parametrize("board_field", list(BoardField))
@pytest.mark.asyncio
async def test_disabled_write_then_read_is_none(disabled_storage, backend, board_field):
    disabled_storage.content.write(P1, board_field, "anything")
    await disabled_storage.drain()
    assert disabled_storage.content.read(P1, board_field) is None
    assert backend.board_data.upserts == []


@pytest.mark.asyncio
async def test_disabled_ensure_loaded_does_not_fetch(disabled_storage, backend):
    await disabled_storage.ensure_board_data_loaded(P1)
    assert backend.board_data.calls == []


@pytest.mark.asyncio
async def test_empty_id_is_ignored(signed_in, backend):
    await signed_in.ensure_board_data_loaded(None)
    signed_in.save_tasks("", [{"task": "A"}])
    await signed_in.drain()
    assert signed_in.load_tasks(None) is None
    assert backend.board_data.calls == []
    assert backend.board_data.upserts == []


@pytest.mark.asyncio
async def test_unloaded_id_reads_none(signed_in):
    assert signed_in.load_tasks(P1) is None


# ─── Loading ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_existing_row_is_loaded(signed_in, backend):
    backend.board_data.rows[P1] = BoardDocument(
        tasks=[{"task": "A"}], settings={"zoom": 2}, view="timeline",
        custom_palettes=[{"name": "warm"}],
    )
    await signed_in.ensure_board_data_loaded(P1)
    assert signed_in.load_tasks(P1) == [{"task": "A"}]
    assert signed_in.load_settings(P1) == {"zoom": 2}
    assert signed_in.load_view(P1) == "timeline"
    assert signed_in.load_custom_palettes(P1) == [{"name": "warm"}]


@pytest.mark.asyncio
async def test_missing_row_seeds_defaults(signed_in):
    await signed_in.ensure_board_data_loaded(P1)
    assert signed_in.load_tasks(P1) == []
    assert signed_in.load_settings(P1) == {}
    assert signed_in.load_view(P1) == "default"
    assert signed_in.load_custom_palettes(P1) == []


@pytest.mark.asyncio
async def test_failed_fetch_seeds_defaults_and_logs(signed_in, backend, caplog):
    backend.board_data.failures["get"] = remote_error("select", "board_data")

    with caplog.at_level(logging.WARNING):
        await signed_in.ensure_board_data_loaded(P1)

    for board_field in BoardField:
        assert signed_in.content.read(P1, board_field) is not None
    assert "Board data load failed" in caplog.text


@pytest.mark.asyncio
async def test_second_load_issues_no_fetch(signed_in, backend):
    await signed_in.ensure_board_data_loaded(P1)
    await signed_in.ensure_board_data_loaded(P1)
    assert backend.board_data.count("get") == 1


@pytest.mark.asyncio
async def test_slow_fetch_does_not_clobber_local_write(signed_in, backend):
    backend.board_data.rows[P1] = BoardDocument(view="remote")
    release = asyncio.Event()
    backend.board_data.hold["get"] = release

    loading = asyncio.create_task(signed_in.ensure_board_data_loaded(P1))
    await asyncio.sleep(0)
    signed_in.save_view(P1, "local")
    release.set()
    await loading

    assert signed_in.load_view(P1) == "local"


@pytest.mark.asyncio
async def test_fetch_resolving_after_sign_out_is_discarded(signed_in, backend):
    backend.board_data.rows[P1] = BoardDocument(tasks=[{"task": "private"}])
    release = asyncio.Event()
    backend.board_data.hold["get"] = release

    loading = asyncio.create_task(signed_in.ensure_board_data_loaded(P1))
    await asyncio.sleep(0)
    await signed_in.sign_out()
    release.set()
    await loading

    assert signed_in.load_tasks(P1) is None


# ─── Writing ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_write_is_readable_without_awaiting_network(signed_in, backend):
    release = asyncio.Event()
    backend.board_data.hold["upsert"] = release

    signed_in.save_view(P1, "timeline")

    assert signed_in.load_view(P1) == "timeline"
    release.set()
    await signed_in.drain()


@pytest.mark.asyncio
async def test_write_upserts_complete_document(signed_in, backend):
    backend.board_data.rows[P1] = BoardDocument(tasks=[{"task": "A"}], settings={"zoom": 1})
    await signed_in.ensure_board_data_loaded(P1)

    signed_in.save_view(P1, "timeline")
    await signed_in.drain()

    project_id, sent, updated_at = backend.board_data.upserts[-1]
    assert project_id == P1
    assert sent == BoardDocument(tasks=[{"task": "A"}], settings={"zoom": 1}, view="timeline")
    assert updated_at.tzinfo is not None


@pytest.mark.asyncio
async def test_write_before_load_sends_defaults_for_other_fields(signed_in, backend):
    signed_in.save_tasks(P1, [{"task": "B"}])
    await signed_in.drain()
    assert backend.board_data.upserts[-1][1] == BoardDocument(tasks=[{"task": "B"}])


@pytest.mark.asyncio
async def test_each_write_sends_its_own_snapshot(signed_in, backend):
    signed_in.save_tasks(P1, [{"task": "A"}])
    signed_in.save_view(P1, "timeline")
    await signed_in.drain()

    snapshots = [doc for _, doc, _ in backend.board_data.upserts]
    assert len(snapshots) == 2
    assert BoardDocument(tasks=[{"task": "A"}]) in snapshots
    assert BoardDocument(tasks=[{"task": "A"}], view="timeline") in snapshots


@pytest.mark.asyncio
async def test_snapshot_is_not_shared_with_cache(signed_in, backend):
    tasks = [{"task": "A"}]
    signed_in.save_tasks(P1, tasks)
    await signed_in.drain()
    tasks[0]["task"] = "mutated later"
    assert backend.board_data.upserts[-1][1].tasks == [{"task": "A"}]


@pytest.mark.asyncio
async def test_upsert_failure_keeps_local_value(signed_in, backend, caplog):
    backend.board_data.failures["upsert"] = remote_error("upsert", "board_data")

    with caplog.at_level(logging.WARNING):
        signed_in.save_settings(P1, {"zoom": 3})
        await signed_in.drain()

    assert signed_in.load_settings(P1) == {"zoom": 3}
    assert P1 not in backend.board_data.rows
    assert "Upsert board_data failed" in caplog.text


@pytest.mark.asyncio
async def test_write_accepts_field_name_strings(signed_in):
    signed_in.content.write(P1, "custom_palettes", [{"name": "cool"}])
    assert signed_in.content.read(P1, "custom_palettes") == [{"name": "cool"}]
    assert signed_in.content.read_palettes(P1) == [{"name": "cool"}]
    await signed_in.drain()
