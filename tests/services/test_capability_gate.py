"""Capability Gate: enablement, backend replacement and cache lifecycle."""

import pytest

from boardsync.core.domain_types import BoardDocument, ConnectionConfig, ProjectId
from boardsync.core.errors import NotConfiguredError
from boardsync.services.capability_gate import CapabilityGate

from tests.services.fake_backend import CONFIG, FakeBackend


@pytest.fixture
def built():
    return []


@pytest.fixture
def gate(built):
    async def factory(config):
        backend = FakeBackend()
        built.append((config, backend))
        return backend
    return CapabilityGate(factory)


def test_disabled_until_configured(gate):
    assert not gate.is_enabled()
    with pytest.raises(NotConfiguredError):
        gate.backend


@pytest.mark.parametrize("config", [
    None,
    ConnectionConfig(url="", anon_key="k"),
    ConnectionConfig(url="https://YOUR_PROJECT_REF.supabase.co", anon_key="k"),
    ConnectionConfig(url="https://abcd.supabase.co", anon_key="YOUR_ANON_KEY"),
])
@pytest.mark.asyncio
async def test_unusable_config_keeps_gate_disabled(gate, built, config):
    assert not await gate.configure(config)
    assert not gate.is_enabled()
    assert built == []


@pytest.mark.asyncio
async def test_usable_config_enables(gate, built):
    assert await gate.configure(CONFIG)
    assert gate.is_enabled()
    assert gate.backend is built[0][1]
    assert gate.is_current(built[0][1])


@pytest.mark.asyncio
async def test_same_config_twice_builds_one_backend(gate, built):
    await gate.configure(CONFIG)
    gate.cache.append_project(ProjectId("p1"), "Kept")
    assert not await gate.configure(CONFIG)
    assert len(built) == 1
    assert gate.cache.find_project(ProjectId("p1")) is not None


@pytest.mark.asyncio
async def test_new_config_replaces_and_closes_previous_backend(gate, built):
    await gate.configure(CONFIG)
    gate.cache.put_document(ProjectId("p1"), BoardDocument())
    other = ConnectionConfig(url="https://efgh5678.supabase.co", anon_key="other")

    assert await gate.configure(other)

    first, second = built[0][1], built[1][1]
    assert first.closed
    assert gate.backend is second
    assert not gate.is_current(first)
    assert gate.cache.documents == {}


@pytest.mark.asyncio
async def test_disable_clears_cache_and_closes_backend(gate, built):
    await gate.configure(CONFIG)
    gate.cache.append_project(ProjectId("p1"), "One")

    await gate.disable()

    assert not gate.is_enabled()
    assert gate.config is None
    assert gate.cache.projects == []
    assert built[0][1].closed


@pytest.mark.asyncio
async def test_disable_when_already_disabled_is_noop(gate):
    await gate.disable()
    assert not gate.is_enabled()
