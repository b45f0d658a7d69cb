import random

import pytest

from imposter.logic.enums import Difficulty, Phase
from imposter.session.registry import SessionRegistry
from imposter.tests.helpers.builders import single_pair_source


@pytest.fixture
async def registry():
    session_registry = SessionRegistry(single_pair_source(), {})
    yield session_registry
    await session_registry.close()


class TestCreateOrGet:
    async def test_fresh_session(self, registry):
        actor, created = registry.create_or_get("room-1")

        assert created is True
        session = actor.session
        assert session.session_id == "room-1"
        assert session.phase == Phase.WAITING
        assert session.round_number == 1
        assert session.players == []
        assert session.scores == {}
        assert actor.timer.is_running is False

    async def test_second_call_returns_same_session(self, registry):
        first, _ = registry.create_or_get("room-1")
        first.session.scores["Player 1"] = 3

        second, created = registry.create_or_get("room-1", Difficulty.HARD)

        assert created is False
        assert second is first
        assert second.session is first.session
        assert second.session.scores == {"Player 1": 3}
        assert second.session.difficulty == Difficulty.EASY

    async def test_difficulty(self):
        registry = SessionRegistry(single_pair_source(), {}, default_difficulty=Difficulty.MEDIUM)
        assert registry.create_or_get("a")[0].session.difficulty == Difficulty.MEDIUM
        assert registry.create_or_get("b", Difficulty.HARD)[0].session.difficulty == Difficulty.HARD
        await registry.close()

    async def test_any_number_of_ids_is_accepted(self, registry):
        actors = [registry.create_or_get(f"room-{n}")[0] for n in range(50)]

        assert registry.session_count == 50
        assert len({id(a) for a in actors}) == 50
        assert registry.create_or_get("room-0") == (actors[0], False)

    async def test_seeded_registries_are_reproducible(self):
        first = SessionRegistry(single_pair_source(), {}, rng=random.Random(5))
        second = SessionRegistry(single_pair_source(), {}, rng=random.Random(5))
        a = first.create_or_get("room")[0].session.rng.random()
        b = second.create_or_get("room")[0].session.rng.random()
        assert a == b


class TestLookupAndRemoval:
    async def test_get(self, registry):
        assert registry.get("missing") is None
        actor, _ = registry.create_or_get("room-1")
        assert registry.get("room-1") is actor

    async def test_discard_closes_actor(self, registry):
        actor, _ = registry.create_or_get("room-1")
        await registry.discard("room-1")
        assert registry.get("room-1") is None
        assert actor.is_closed is True
        await registry.discard("room-1")

    async def test_clear(self, registry):
        actors = [registry.create_or_get(f"room-{n}")[0] for n in range(3)]
        assert registry.session_count == 3
        assert sorted(registry.session_ids()) == ["room-0", "room-1", "room-2"]

        await registry.clear()

        assert registry.session_count == 0
        assert all(a.is_closed for a in actors)
