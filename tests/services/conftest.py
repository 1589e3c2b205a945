"""Service test fixtures: GanttStorage wired to the in-memory fake backend.

Invariants:
    - Every test gets a fresh FakeBackend and MemoryKeyValueStore
    - `storage` is enabled (init applied) but signed out
    - `signed_in` is enabled and signed in as alice (user-a)
    - Pending background writes are drained after each test

Design Decisions:
    - backend_factory returns the shared fake, so tests seed and inspect remote
      state through `backend` directly
"""

import pytest
import pytest_asyncio

from boardsync.services.storage import GanttStorage

from tests.services.fake_backend import (
    ALICE, BOB, CONFIG, FakeBackend, MemoryKeyValueStore, backend_factory,
)


@pytest.fixture
def backend():
    fake = FakeBackend()
    fake.auth.register(*ALICE)
    fake.auth.register(*BOB)
    return fake


@pytest.fixture
def kv_store():
    return MemoryKeyValueStore()


@pytest.fixture
def disabled_storage(backend, kv_store):
    """Storage with no config applied: local-only mode."""
    return GanttStorage(config_store=kv_store, backend_factory=backend_factory(backend))


@pytest_asyncio.fixture
async def storage(disabled_storage):
    assert await disabled_storage.init(CONFIG)
    yield disabled_storage
    await disabled_storage.drain()


@pytest_asyncio.fixture
async def signed_in(storage):
    result = await storage.sign_in(ALICE[0], ALICE[1])
    assert result.ok
    return storage
