"""
Snake Puzzle - Level Generator
Версия: 2.0 (FRONTIER-FIRST ALGORITHM)

Подход:
✅ Первая змейка - случайная клетка и направление
✅ Каждая следующая стартует с фронтира: свободная клетка рядом с
   занятыми, у которой путь до края свободен
✅ Любой уровень проходим: удаляем змеек в обратном порядке постановки
✅ Опционально - добивка поля с полной проверкой проходимости
"""

import logging
import secrets
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional, Set, Tuple

from ..config import settings
from ..models import ALL_DIRECTIONS, Direction, GameLevel, Point, Snake
from .board_shape import BoardShape
from .geometry import count_valid_cells, has_clear_los, is_free_at, line_of_sight
from .snake_builder import SnakeBuilder


logger = logging.getLogger(__name__)


# ============================================
# SEEDED RANDOM
# ============================================

class SeededRandom:
    """Детерминированный PRNG для воспроизводимости уровней."""

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = secrets.randbits(31)
        self.seed = seed
        self._state = seed & 0x7FFFFFFF

    def next(self) -> float:
        """Возвращает число из [0, 1)."""
        self._state = (self._state * 1103515245 + 12345) & 0x7FFFFFFF
        return self._state / 0x80000000

    def next_int(self, min_val: int, max_val: int) -> int:
        """Возвращает целое число в диапазоне [min, max]."""
        if min_val > max_val:
            return min_val
        return min_val + int(self.next() * (max_val - min_val + 1))

    def shuffle(self, arr) -> list:
        """Fisher-Yates shuffle (возвращает новый список)."""
        result = list(arr)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def choice(self, arr: list):
        """Случайный элемент массива."""
        if not arr:
            return None
        return arr[self.next_int(0, len(arr) - 1)]


# ============================================
# CONFIG & PARAMS
# ============================================

@dataclass
class GeneratorConfig:
    """Параметры одного прогона; walls - плоский массив y * width + x."""

    width: int
    height: int
    max_snake_length: int
    fill_the_board: bool
    walls: bytearray


@dataclass
class GenerationParams:
    width: int
    height: int
    max_snake_length: int
    fill_the_board: bool = False
    board_shape: Optional[BoardShape] = None
    on_progress: Optional[Callable[[float], None]] = None
    seed: Optional[int] = None


# ============================================
# FRONTIER
# ============================================

class FrontierCandidate(NamedTuple):
    point: Point
    direction: Direction

    def pack(self, width: int) -> int:
        return (self.point.y * width + self.point.x) * 4 + self.direction.ordinal

    @classmethod
    def unpack(cls, key: int, width: int) -> "FrontierCandidate":
        cell, dir_index = divmod(key, 4)
        y, x = divmod(cell, width)
        return cls(Point(x, y), ALL_DIRECTIONS[dir_index])


@dataclass
class GenerationContext:
    """
    Изменяемое состояние одного прогона.

    Инвариант фронтира: каждый кандидат свободен, не стена,
    и путь от него до края по его направлению пуст.
    """

    config: GeneratorConfig
    occupied: bytearray
    snakes: List[Snake] = field(default_factory=list)
    frontier: Set[int] = field(default_factory=set)

    @classmethod
    def create(cls, config: GeneratorConfig) -> "GenerationContext":
        return cls(config=config, occupied=bytearray(config.width * config.height))

    def is_free(self, p: Point) -> bool:
        c = self.config
        return is_free_at(p, self.occupied, c.walls, c.width, c.height)

    def frontier_candidates(self) -> List[FrontierCandidate]:
        width = self.config.width
        return [FrontierCandidate.unpack(key, width) for key in sorted(self.frontier)]

    def occupied_count(self) -> int:
        return sum(len(s.body) for s in self.snakes)

    def add_snake(self, snake: Snake):
        """Ставит змейку и обновляет фронтир."""
        width, height = self.config.width, self.config.height
        self.snakes.append(snake)

        for p in snake.body:
            self.occupied[p.y * width + p.x] = 1

        # Занятые клетки и кандидаты, чей путь теперь перекрыт
        for p in snake.body:
            for direction in ALL_DIRECTIONS:
                self.frontier.discard(FrontierCandidate(p, direction).pack(width))
                for behind in line_of_sight(p, direction.opposite, width, height):
                    self.frontier.discard(FrontierCandidate(behind, direction).pack(width))

        # Новые кандидаты вокруг тела
        for p in snake.body:
            for direction in ALL_DIRECTIONS:
                neighbor = p.step(direction)
                if self.is_free(neighbor):
                    self._add_candidates_for_point(neighbor)

    def _add_candidates_for_point(self, p: Point):
        width, height = self.config.width, self.config.height
        for head_dir in ALL_DIRECTIONS:
            if has_clear_los(p, head_dir, self.occupied, width, height):
                self.frontier.add(FrontierCandidate(p, head_dir).pack(width))

    def mark_occupied(self, snake: Snake):
        """Ставит змейку без обновления фронтира (добивка поля)."""
        self.snakes.append(snake)
        for p in snake.body:
            self.occupied[p.y * self.config.width + p.x] = 1


# ============================================
# GAME GENERATOR
# ============================================

class _ProgressReporter:
    """Прогресс = занятые / допустимые клетки, никогда не убывает."""

    def __init__(self, callback: Optional[Callable[[float], None]], total_cells: int):
        self.callback = callback
        self.total_cells = total_cells
        self.last = 0.0

    def report(self, value: float):
        value = min(max(value, self.last), 1.0)
        self.last = value
        if self.callback is not None:
            self.callback(value)

    def report_cells(self, occupied: int):
        if self.total_cells <= 0:
            return
        self.report(occupied / self.total_cells)


class GameGenerator:
    """Генерирует гарантированно проходимые уровни."""

    def __init__(self, straight_preference: Optional[float] = None, rng: Optional[SeededRandom] = None):
        if straight_preference is None:
            straight_preference = settings.STRAIGHT_PREFERENCE
        self.set_straight_preference(straight_preference)
        self.rng = rng or SeededRandom()

    def set_straight_preference(self, value: float):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"straight_preference must be in [0, 1], got: {value}")
        self.straight_preference = value

    def generate_solvable_level(self, params: GenerationParams) -> GameLevel:
        width, height = params.width, params.height
        if params.fill_the_board:
            width = min(width, settings.MAX_FILL_BOARD_SIZE)
            height = min(height, settings.MAX_FILL_BOARD_SIZE)

        walls = _resolve_walls(params.board_shape, width, height)
        config = GeneratorConfig(
            width=width,
            height=height,
            max_snake_length=params.max_snake_length,
            fill_the_board=params.fill_the_board,
            walls=walls,
        )
        context = GenerationContext.create(config)

        rng = SeededRandom(params.seed) if params.seed is not None else self.rng
        builder = SnakeBuilder(rng, straight_preference=self.straight_preference)
        progress = _ProgressReporter(params.on_progress, count_valid_cells(width, height, walls))

        self._generate_initial_snakes(context, builder, progress)
        if not context.snakes:
            logger.info(f"[Generator] {width}x{height}: no room for the first snake, empty level")
            progress.report(0.0)
            return GameLevel(width=width, height=height)

        if params.fill_the_board:
            self._fill_remaining_board(context, builder, progress)

        progress.report(1.0)
        logger.info(
            f"[Generator] {width}x{height} max_len={params.max_snake_length} "
            f"fill={params.fill_the_board}: snakes={len(context.snakes)} "
            f"cells={context.occupied_count()}/{progress.total_cells}"
        )
        return GameLevel(width=width, height=height, snakes=tuple(context.snakes))

    def _generate_initial_snakes(self, context: GenerationContext, builder: SnakeBuilder, progress: _ProgressReporter):
        snake = builder.build_first_snake(context.config, context.occupied)

        while snake is not None:
            context.add_snake(snake)
            progress.report_cells(context.occupied_count())
            snake = builder.build_next_snake(context)

        logger.debug(f"[Generator] Initial phase done: {len(context.snakes)} snakes")

    def _fill_remaining_board(self, context: GenerationContext, builder: SnakeBuilder, progress: _ProgressReporter):
        added = 0
        snake = builder.build_last_snake(context)

        while snake is not None:
            context.mark_occupied(snake)
            progress.report_cells(context.occupied_count())
            added += 1
            snake = builder.build_last_snake(context)

        logger.debug(f"[Generator] Fill phase done: +{added} snakes")


def _resolve_walls(board_shape: Optional[BoardShape], width: int, height: int) -> bytearray:
    if board_shape is None:
        return bytearray(width * height)
    rows = board_shape.get_walls(width, height)
    return bytearray(1 if rows[y][x] else 0 for y in range(height) for x in range(width))


def generate_solvable_level(
    width: int,
    height: int,
    max_snake_length: int,
    fill_the_board: bool = False,
    board_shape: Optional[BoardShape] = None,
    on_progress: Optional[Callable[[float], None]] = None,
    seed: Optional[int] = None,
    straight_preference: Optional[float] = None,
) -> GameLevel:
    """Сгенерировать один уровень (новый контекст на каждый вызов)."""
    generator = GameGenerator(straight_preference=straight_preference)
    return generator.generate_solvable_level(GenerationParams(
        width=width,
        height=height,
        max_snake_length=max_snake_length,
        fill_the_board=fill_the_board,
        board_shape=board_shape,
        on_progress=on_progress,
        seed=seed,
    ))


# ============================================
# CLI TESTING
# ============================================

if __name__ == "__main__":
    import time

    from .solvability import validate_level

    print("🐍 Snake Puzzle Generator v2.0 (FRONTIER-FIRST)")
    print("=" * 60)

    test_configs: List[Tuple[int, int, int, bool]] = [
        (5, 5, 10, False),
        (8, 8, 6, False),
        (10, 10, 12, True),
        (20, 20, 20, False),
    ]

    for w, h, max_len, fill in test_configs:
        start = time.time()
        result = generate_solvable_level(w, h, max_len, fill_the_board=fill, seed=w * 1000 + max_len)
        elapsed = (time.time() - start) * 1000

        validation = validate_level(result)
        status = "✅" if validation["valid"] else "❌"
        print(f"\n{w}x{h} len={max_len} fill={fill} {status} | {elapsed:7.1f}ms")
        print(f"  Snakes: {len(result.snakes)}")
        print(f"  Coverage: {validation['coverage']:.1f}%")

        lengths = [len(s.body) for s in result.snakes]
        if lengths:
            print(f"  Lengths: min={min(lengths)}, max={max(lengths)}, avg={sum(lengths)/len(lengths):.1f}")

        for err in validation["errors"][:5]:
            print(f"     - {err}")

    print("\n" + "=" * 60)
