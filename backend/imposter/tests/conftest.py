import random

import pytest

from imposter.logic.timer import TimerConfig
from imposter.messaging.router import MessageRouter
from imposter.session.manager import SessionManager
from imposter.tests.helpers.builders import single_pair_source
from imposter.tests.mocks import MockConnection


@pytest.fixture
def word_source():
    return single_pair_source()


@pytest.fixture
def timer_config():
    # long phases so no countdown expires unless a test drives it
    return TimerConfig(clue_seconds=60, voting_seconds=60, tick_seconds=1.0)


@pytest.fixture
async def manager(word_source, timer_config):
    session_manager = SessionManager(
        word_source,
        timer_config=timer_config,
        disconnect_grace_seconds=0.05,
        rng=random.Random(7),
    )
    yield session_manager
    await session_manager.close()


@pytest.fixture
def router(manager):
    return MessageRouter(manager)


@pytest.fixture
def connect(manager):
    """Build a registered MockConnection for the given session id."""

    def _connect(session_id: str = "room-1") -> MockConnection:
        connection = MockConnection(session_id=session_id)
        manager.register_connection(connection)
        return connection

    return _connect
