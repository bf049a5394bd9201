"""
Shared fixtures for the VoicePost backend tests.
"""

import pytest
import pytest_asyncio

from fakes import TEST_ROUNDS, FakeClock, RecordingSleep
from voicepost.core.retry import RetryConfig, RetryController
from voicepost.db.database import create_database
from voicepost.storage.memory import MemoryStore
from voicepost.storage.relational import RelationalStore


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def retry(sleep):
    """RetryController with the default policy and a recording sleep."""
    return RetryController(RetryConfig(), sleep=sleep)


@pytest.fixture
def memory_store(clock):
    return MemoryStore(clock=clock, password_rounds=TEST_ROUNDS)


@pytest_asyncio.fixture
async def relational_store(tmp_path, clock):
    database = create_database(f"sqlite:///{tmp_path / 'voicepost-test.db'}")
    store = RelationalStore(database, clock=clock, password_rounds=TEST_ROUNDS)
    await store.connect()
    yield store
    await store.disconnect()


@pytest_asyncio.fixture(params=["memory", "relational"])
async def store(request, tmp_path, clock):
    """Runs a test once against each ResultStore backend."""
    if request.param == "memory":
        yield MemoryStore(clock=clock, password_rounds=TEST_ROUNDS)
        return

    database = create_database(f"sqlite:///{tmp_path / 'voicepost-test.db'}")
    relational = RelationalStore(database, clock=clock, password_rounds=TEST_ROUNDS)
    await relational.connect()
    yield relational
    await relational.disconnect()
