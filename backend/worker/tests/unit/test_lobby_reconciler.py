from datetime import UTC, datetime

import pytest
from pymongo.errors import ServerSelectionTimeoutError
from redis.exceptions import ConnectionError as RedisConnectionError

from shared.cache import game_cards_key, lobby_members_key, room_members_key
from shared.dal import GameAggregate
from worker.tests.mocks import FakeRedis, WorkerHarness, make_job


class TestCardRelease:
    async def test_releases_only_the_players_cards(self, harness):
        await harness.seed_game(cards={7: "A", 8: "B", 9: "A"})

        result = await harness.lobby.reconcile(make_job("A"))

        assert result.ok
        assert sorted(result.released_card_ids) == [7, 9]
        assert await harness.card_map() == {"8": "B"}
        assert harness.cards.get("G", 7).is_taken is False
        assert harness.cards.get("G", 7).taken_by is None
        assert harness.cards.get("G", 9).is_taken is False
        assert harness.cards.get("G", 8).taken_by == "B"

    async def test_owner_values_are_compared_after_trimming(self, harness):
        await harness.seed_game(players=("123", "456"))
        await harness.redis.hset(game_cards_key("G"), "5", " 123 ")

        result = await harness.lobby.reconcile(make_job("123"))

        assert result.released_card_ids == [5]
        assert await harness.card_map() == {}

    async def test_publishes_cards_released(self, harness):
        await harness.seed_game(cards={7: "A"})

        await harness.lobby.reconcile(make_job("A"))

        assert harness.events("cardsReleased") == [
            {"event": "cardsReleased", "gameId": "G", "cardIds": [7], "releasedBy": "A"},
        ]

    async def test_no_cards_means_no_event_and_no_durable_write(self, harness):
        await harness.seed_game(cards={8: "B"})

        result = await harness.lobby.reconcile(make_job("A"))

        assert result.released_card_ids == []
        assert harness.events("cardsReleased") == []
        assert harness.cards.release_calls == []

    async def test_non_numeric_card_field_is_removed_but_not_mirrored(self, harness):
        await harness.seed_game(cards={7: "A"})
        await harness.redis.hset(game_cards_key("G"), "bogus", "A")

        result = await harness.lobby.reconcile(make_job("A"))

        assert result.released_card_ids == [7]
        assert await harness.card_map() == {}
        assert harness.cards.release_calls == [("G", [7])]
        assert result.discarded_fields == ["bogus"]

    async def test_only_non_numeric_fields_are_reported_as_discarded(self, harness):
        await harness.seed_game(cards={})
        await harness.redis.hset(game_cards_key("G"), "bogus", "A")

        result = await harness.lobby.reconcile(make_job("A"))

        assert result.ok
        assert result.released_card_ids == []
        assert result.discarded_fields == ["bogus"]
        assert await harness.card_map() == {}
        assert harness.cards.release_calls == []
        assert harness.events("cardsReleased") == []


class TestIdempotence:
    async def test_second_run_changes_nothing(self, harness):
        await harness.seed_game(cards={7: "A", 8: "B"})
        job = make_job("A")

        await harness.lobby.reconcile(job)
        cards_after_first = dict(harness.cards.cards)
        map_after_first = await harness.card_map()
        calls_after_first = len(harness.cards.release_calls)

        second = await harness.lobby.reconcile(job)

        assert second.ok
        assert second.released_card_ids == []
        assert harness.cards.cards == cards_after_first
        assert await harness.card_map() == map_after_first
        assert len(harness.cards.release_calls) == calls_after_first
        assert len(harness.events("cardsReleased")) == 1


class _RacingRedis(FakeRedis):
    """Simulates the live service handing the player a card during the first delete."""

    def __init__(self, card_field: str, owner: str, *, after_delete: bool = False) -> None:
        super().__init__()
        self._card_field = card_field
        self._owner = owner
        self._after_delete = after_delete
        self.raced = False

    async def hdel(self, name, *keys):
        if self.raced:
            return await super().hdel(name, *keys)
        self.raced = True
        if self._after_delete:
            removed = await super().hdel(name, *keys)
            await self.hset(name, self._card_field, self._owner)
            return removed
        await self.hset(name, self._card_field, self._owner)
        return await super().hdel(name, *keys)


class TestRaceConvergence:
    async def test_card_taken_between_scan_and_delete_is_released(self):
        harness = WorkerHarness(redis=_RacingRedis("9", "A"))
        await harness.seed_game(cards={7: "A", 8: "B"})
        harness.cards.take("G", 9, "A")

        result = await harness.lobby.reconcile(make_job("A"))

        assert harness.redis.raced
        assert await harness.card_map() == {"8": "B"}
        assert result.released_card_ids == [7, 9]
        assert harness.cards.get("G", 9).is_taken is False
        assert harness.events("cardsReleased")[0]["cardIds"] == [7, 9]

    async def test_same_card_retaken_is_reported_once(self):
        harness = WorkerHarness(redis=_RacingRedis("7", "A", after_delete=True))
        await harness.seed_game(cards={7: "A"})

        result = await harness.lobby.reconcile(make_job("A"))

        assert harness.redis.raced
        assert result.released_card_ids == [7]
        assert await harness.card_map() == {}


class TestMembership:
    async def test_removes_player_from_both_sets(self, harness):
        await harness.seed_game(players=("A", "B"))

        result = await harness.lobby.reconcile(make_job("A"))

        assert await harness.redis.smembers(lobby_members_key("G")) == {"B"}
        assert await harness.redis.smembers(room_members_key("G")) == {"B"}
        assert result.remaining_members == 1
        assert result.round_ended is False

    async def test_absent_player_is_a_noop(self, harness):
        await harness.seed_game(players=("B",))

        result = await harness.lobby.reconcile(make_job("A"))

        assert result.ok
        assert await harness.redis.smembers(room_members_key("G")) == {"B"}


class TestEmptyLobbyReset:
    async def test_last_player_ends_round_and_resets(self, harness):
        await harness.seed_game(players=("A",), cards={7: "A", 8: "X"})

        result = await harness.lobby.reconcile(make_job("A"))

        game = harness.games.latest("G")
        assert result.round_ended is True
        assert game.ended_at is not None
        assert game.is_active is False
        assert game.players == []
        assert await harness.card_map() == {}
        assert game_cards_key("G") not in harness.redis.hashes
        assert harness.events("fullGameReset") == [{"event": "fullGameReset", "gameId": "G", "gameSessionId": "S1"}]

    async def test_replay_does_not_reset_twice(self, harness):
        await harness.seed_game(players=("A",), cards={7: "A"})
        job = make_job("A")

        await harness.lobby.reconcile(job)
        ended_at = harness.games.latest("G").ended_at
        replay = await harness.lobby.reconcile(job)

        assert replay.ok
        assert replay.round_ended is False
        assert harness.games.latest("G").ended_at == ended_at
        assert len(harness.events("fullGameReset")) == 1
        assert len(harness.events("cardsReleased")) == 1

    async def test_only_the_open_round_is_ended(self, harness):
        old_end = datetime(2025, 1, 1, tzinfo=UTC)
        harness.games.add(GameAggregate(game_id="G", game_session_id="S0", ended_at=old_end))
        await harness.seed_game(players=("A",), session_id="S2")

        await harness.lobby.reconcile(make_job("A", session_id="S2"))

        assert harness.games.games[0].ended_at == old_end
        assert harness.games.games[1].ended_at is not None
        assert harness.games.end_calls == 1

    async def test_durable_timeout_fails_the_job_without_reset(self):
        harness = WorkerHarness(write_timeout=0.01)
        harness.games.write_delay = 0.5
        await harness.seed_game(players=("A",), cards={7: "A"})

        result = await harness.lobby.reconcile(make_job("A"))

        assert not result.ok
        assert "TimeoutError" in result.error
        assert harness.events("fullGameReset") == []
        # cards were already released before the timeout
        assert result.released_card_ids == [7]
        assert len(harness.events("cardsReleased")) == 1


class TestFailureIsolation:
    async def test_store_error_is_reported_not_raised(self, harness):
        async def broken_scard(name):
            raise RuntimeError("unexpected reply")

        harness.redis.scard = broken_scard
        await harness.seed_game(cards={7: "A"})

        result = await harness.lobby.reconcile(make_job("A"))

        assert result.error == "RuntimeError: unexpected reply"
        assert result.released_card_ids == [7]

    async def test_publish_failure_does_not_undo_release(self, harness):
        harness.redis.fail_publish = True
        await harness.seed_game(players=("A",), cards={7: "A"})

        result = await harness.lobby.reconcile(make_job("A"))

        assert result.ok
        assert result.round_ended is True
        assert harness.cards.get("G", 7).is_taken is False
        assert harness.redis.published == []

    async def test_durable_outage_propagates(self, harness):
        async def unreachable(game_id, card_ids):
            raise ServerSelectionTimeoutError("no servers available")

        harness.cards.release_cards = unreachable
        await harness.seed_game(cards={7: "A"})

        with pytest.raises(ServerSelectionTimeoutError):
            await harness.lobby.reconcile(make_job("A"))

    async def test_redis_outage_propagates(self, harness):
        async def unreachable(name):
            raise RedisConnectionError("Connection refused")

        harness.redis.scard = unreachable
        await harness.seed_game(cards={7: "A"})

        with pytest.raises(RedisConnectionError):
            await harness.lobby.reconcile(make_job("A"))
