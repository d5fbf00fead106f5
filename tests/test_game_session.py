import asyncio
import json

import pytest

from snake_puzzle.services.game_session import GameSession, TapOutcome
from snake_puzzle.services.level_store import KEY_PREFIX, LevelStore, new_session_id


class TestGameSession:
    def test_start_uses_default_lives(self, blocked_level):
        session = GameSession.start(blocked_level)
        assert session.lives == session.max_lives == 5
        assert session.total_snakes == 2

    def test_blocked_tap_costs_a_life(self, blocked_level):
        session = GameSession.start(blocked_level, max_lives=3)

        assert session.tap(1) == TapOutcome.BLOCKED
        assert session.lives == 2
        assert session.level == blocked_level

    def test_clearing_the_board_wins(self, blocked_level):
        session = GameSession.start(blocked_level)

        assert session.tap(2) == TapOutcome.REMOVED
        assert session.tap(1) == TapOutcome.REMOVED
        assert session.is_game_won
        assert not session.is_game_over
        assert session.tap(1) == TapOutcome.IGNORED

    def test_unknown_snake(self, blocked_level):
        session = GameSession.start(blocked_level)
        assert session.tap(99) == TapOutcome.UNKNOWN
        assert session.lives == 5

    def test_blocker_still_on_board_keeps_blocking(self, blocked_level):
        session = GameSession.start(blocked_level)

        assert session.tap(1) == TapOutcome.BLOCKED
        assert session.level.snake_by_id(1) is not None
        assert session.tap(2) == TapOutcome.REMOVED
        assert session.tap(1) == TapOutcome.REMOVED

    def test_game_over_after_last_life(self, deadlock_level):
        session = GameSession.start(deadlock_level, max_lives=2)
        session.tap(1)
        session.tap(2)

        assert session.lives == 0
        assert session.is_game_over
        assert session.tap(1) == TapOutcome.IGNORED
        assert session.hint() is None

    def test_hint_restart_and_extra_life(self, blocked_level):
        session = GameSession.start(blocked_level, max_lives=2)
        assert session.hint() == 2

        session.tap(1)
        session.tap(2)
        assert session.add_life()
        assert session.lives == 2
        assert not session.add_life()
        assert session.lives == 2

        session.restart()
        assert session.level == blocked_level
        assert session.lives == 2

    def test_dict_round_trip(self, blocked_level):
        session = GameSession.start(blocked_level, max_lives=4)
        session.tap(2)
        session.tap(1)

        restored = GameSession.from_dict(json.loads(json.dumps(session.to_dict())))
        assert restored == session

    def test_no_extra_life_after_win(self, single_snake_level):
        session = GameSession.start(single_snake_level, max_lives=2)
        session.lives = 1
        session.tap(1)
        assert session.is_game_won
        assert not session.add_life()
        assert session.lives == 1

    def test_from_dict_rejects_broken_payload(self):
        assert GameSession.from_dict({"level": {"width": 3}}) is None
        assert GameSession.from_dict([1, 2]) is None
        assert GameSession.from_dict(None) is None


class TestLevelStore:
    def test_save_load_delete(self, fake_redis, blocked_level):
        store = LevelStore(fake_redis, ttl_seconds=60)
        session = GameSession.start(blocked_level)
        session_id = new_session_id()

        async def scenario():
            await store.save(session_id, session)
            loaded = await store.load(session_id)
            deleted = await store.delete(session_id)
            return loaded, deleted, await store.load(session_id), await store.delete(session_id)

        loaded, deleted, missing, deleted_again = asyncio.run(scenario())

        assert loaded == session
        assert deleted
        assert missing is None
        assert not deleted_again
        assert fake_redis.ttls[KEY_PREFIX + session_id] == 60

    @pytest.mark.parametrize("payload", ["{oops", "[1, 2]", "42", "null"])
    def test_corrupted_payload_is_ignored(self, fake_redis, payload):
        fake_redis.data[KEY_PREFIX + "broken"] = payload
        assert asyncio.run(LevelStore(fake_redis).load("broken")) is None
