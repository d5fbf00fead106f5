"""
Snake Puzzle - Domain Models

Point / Direction / Snake / GameLevel.
Immutable values: a level changes only by dropping whole snakes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple


# ============================================
# DIRECTION
# ============================================

class Direction(str, Enum):
    """Направление головы змейки (= направление удаления)."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def dx(self) -> int:
        return DIRECTION_VECTORS[self][0]

    @property
    def dy(self) -> int:
        return DIRECTION_VECTORS[self][1]

    @property
    def opposite(self) -> "Direction":
        return OPPOSITES[self]

    @property
    def ordinal(self) -> int:
        return ALL_DIRECTIONS.index(self)


ALL_DIRECTIONS: Tuple[Direction, ...] = (
    Direction.UP,
    Direction.DOWN,
    Direction.LEFT,
    Direction.RIGHT,
)

DIRECTION_VECTORS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


# ============================================
# POINT
# ============================================

class Point(NamedTuple):
    """Клетка поля."""

    x: int
    y: int

    def step(self, direction: Direction) -> "Point":
        dx, dy = DIRECTION_VECTORS[direction]
        return Point(self.x + dx, self.y + dy)


# ============================================
# SNAKE
# ============================================

@dataclass(frozen=True)
class Snake:
    """
    Змейка: body[0] = голова, body[-1] = хвост.

    head_direction - куда смотрит голова; змейку можно убрать,
    когда путь от головы до края поля свободен.
    """

    id: int
    body: Tuple[Point, ...]
    head_direction: Direction

    @property
    def head(self) -> Point:
        return self.body[0]

    def __len__(self) -> int:
        return len(self.body)


# ============================================
# LEVEL
# ============================================

@dataclass(frozen=True)
class GameLevel:
    """Уровень: размеры поля + набор змеек без пересечений."""

    width: int
    height: int
    snakes: Tuple[Snake, ...] = ()

    def removing_snake(self, snake_id: int) -> "GameLevel":
        """Новый уровень без змейки snake_id (нет такой - уровень не меняется)."""
        return GameLevel(
            width=self.width,
            height=self.height,
            snakes=tuple(s for s in self.snakes if s.id != snake_id),
        )

    def snake_by_id(self, snake_id: int) -> Optional[Snake]:
        for snake in self.snakes:
            if snake.id == snake_id:
                return snake
        return None

    @property
    def is_cleared(self) -> bool:
        return not self.snakes

    @property
    def occupied_cell_count(self) -> int:
        return sum(len(s.body) for s in self.snakes)
