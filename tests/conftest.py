import pytest

from snake_puzzle.models import Direction, GameLevel, Point, Snake


def make_snake(snake_id, cells, direction):
    return Snake(
        id=snake_id,
        body=tuple(Point(x, y) for x, y in cells),
        head_direction=Direction(direction),
    )


class FakeRedis:
    """Minimal async stand-in for the redis client (get/set/delete)."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def get(self, key):
        return self.data.get(key)

    async def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def single_snake_level():
    return GameLevel(
        width=5,
        height=5,
        snakes=(make_snake(1, [(2, 2), (3, 2), (4, 2)], "left"),),
    )


@pytest.fixture
def blocked_level():
    """Snake 1 looks left into snake 2; snake 2 can leave downwards."""
    return GameLevel(
        width=5,
        height=5,
        snakes=(
            make_snake(1, [(3, 2), (4, 2)], "left"),
            make_snake(2, [(1, 2)], "down"),
        ),
    )


@pytest.fixture
def deadlock_level():
    """Two heads facing each other on a 3x1 strip."""
    return GameLevel(
        width=3,
        height=1,
        snakes=(
            make_snake(1, [(0, 0)], "right"),
            make_snake(2, [(2, 0)], "left"),
        ),
    )
