"""
Snake Puzzle - Snake Builder

Строит тело одной змейки перебором с возвратом.

✅ Голова смотрит на свободный путь до края
✅ Тело не заходит на путь собственной головы
✅ Длинные прямые участки в приоритете (straight_preference)
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, List, NamedTuple, Optional, Sequence, Set, Tuple

from ..config import settings
from ..models import ALL_DIRECTIONS, Direction, GameLevel, Point, Snake
from .geometry import cell_index, forbidden_points, get_ordered_directions, has_clear_los, is_free_at, is_inside
from .solvability import is_resolvable

if TYPE_CHECKING:
    from .generator import GenerationContext, GeneratorConfig, SeededRandom


logger = logging.getLogger(__name__)


NEIGHBOURHOOD_8: Tuple[Tuple[int, int], ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
)


# ============================================
# CRITERIA
# ============================================

class CriterionParams(NamedTuple):
    """Всё, что нужно критерию, чтобы оценить следующую клетку."""

    point: Point
    body: Sequence[Point]
    body_cells: Set[int]
    occupied: Sequence[int]
    width: int
    height: int
    forbidden: Set[int]


class Criterion(str, Enum):
    """Условие на следующую клетку тела."""

    ALWAYS_TRUE = "always_true"
    ADJACENT_TO_EXISTING = "adjacent_to_existing"

    def is_satisfied(self, params: CriterionParams) -> bool:
        if self is Criterion.ALWAYS_TRUE:
            return True
        return _touches_structure(params)


def _touches_structure(params: CriterionParams) -> bool:
    """
    Клетка касается (в т.ч. по диагонали) занятой клетки
    или сегмента строящейся змейки, кроме текущего хвоста.
    """
    tail = params.body[-1] if params.body else None
    for dx, dy in NEIGHBOURHOOD_8:
        nx = params.point.x + dx
        ny = params.point.y + dy
        if not (0 <= nx < params.width and 0 <= ny < params.height):
            continue
        idx = ny * params.width + nx
        if params.occupied[idx]:
            return True
        if idx in params.body_cells and (tail is None or (nx, ny) != (tail.x, tail.y)):
            return True
    return False


# ============================================
# RECURSIVE SEARCH
# ============================================

class _BodySearch:
    """
    Поиск в глубину по одному буферу тела (push/pop при возврате).

    best копируется только когда найдено строго более длинное тело,
    поэтому при равной длине побеждает первое найденное.
    """

    def __init__(
        self,
        config: "GeneratorConfig",
        occupied: Sequence[int],
        forbidden: Set[Point],
        criterion: Criterion,
        rng: "SeededRandom",
        straight_preference: float,
    ):
        self.width = config.width
        self.height = config.height
        self.max_length = config.max_snake_length
        self.walls = config.walls
        self.occupied = occupied
        self.forbidden = {cell_index(p, config.width) for p in forbidden}
        self.criterion = criterion
        self.rng = rng
        self.straight_preference = straight_preference

        self.body: List[Point] = []
        self.cells: Set[int] = set()
        self.best: List[Point] = []

    def push(self, p: Point):
        self.body.append(p)
        self.cells.add(p.y * self.width + p.x)

    def pop(self):
        p = self.body.pop()
        self.cells.discard(p.y * self.width + p.x)

    def _is_basic_free(self, p: Point) -> bool:
        if not is_inside(p, self.width, self.height):
            return False
        idx = p.y * self.width + p.x
        return (
            idx not in self.forbidden
            and idx not in self.cells
            and not self.walls[idx]
            and not self.occupied[idx]
        )

    def can_place(self, p: Point) -> bool:
        if not self._is_basic_free(p):
            return False
        return self.criterion.is_satisfied(CriterionParams(
            point=p,
            body=self.body,
            body_cells=self.cells,
            occupied=self.occupied,
            width=self.width,
            height=self.height,
            forbidden=self.forbidden,
        ))

    def reachable_bound(self, tail: Point) -> int:
        """Сколько ещё клеток максимум можно добавить (flood fill, с потолком)."""
        limit = self.max_length - len(self.body)
        seen: Set[int] = set()
        stack = [tail]
        count = 0

        while stack:
            p = stack.pop()
            for d in ALL_DIRECTIONS:
                n = p.step(d)
                if not self._is_basic_free(n):
                    continue
                idx = n.y * self.width + n.x
                if idx in seen:
                    continue
                seen.add(idx)
                count += 1
                if count >= limit:
                    return count
                stack.append(n)

        return count

    def extend(self, prev_dir: Optional[Direction]) -> bool:
        """Returns True as soon as the body reaches max_length."""
        if len(self.body) >= self.max_length:
            return True

        tail = self.body[-1]
        possible = [d for d in self.rng.shuffle(ALL_DIRECTIONS) if self.can_place(tail.step(d))]
        if not possible:
            return False

        # Поддерево не может дать тело длиннее уже найденного
        if len(self.body) + self.reachable_bound(tail) <= len(self.best):
            return False

        ordered = get_ordered_directions(possible, prev_dir, self.straight_preference, self.rng)
        for direction in ordered:
            self.push(tail.step(direction))
            if len(self.body) > len(self.best):
                self.best = list(self.body)

            reached = self.extend(direction)
            self.pop()
            if reached:
                return True

        return False


# ============================================
# SNAKE BUILDER
# ============================================

class SnakeBuilder:
    """Один экземпляр на один прогон генерации (счётчик id не сбрасывается)."""

    def __init__(
        self,
        rng: "SeededRandom",
        straight_preference: Optional[float] = None,
        first_snake_max_attempts: Optional[int] = None,
    ):
        self.rng = rng
        self.straight_preference = (
            settings.STRAIGHT_PREFERENCE if straight_preference is None else straight_preference
        )
        self.first_snake_max_attempts = (
            settings.FIRST_SNAKE_MAX_ATTEMPTS if first_snake_max_attempts is None else first_snake_max_attempts
        )
        self._next_id = 0

    def _get_next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _make_snake(self, body: List[Point], direction: Direction) -> Snake:
        return Snake(id=self._get_next_id(), body=tuple(body), head_direction=direction)

    # ---------- first snake ----------

    def build_first_snake(self, config: "GeneratorConfig", occupied: Sequence[int]) -> Optional[Snake]:
        """Первая змейка: случайная клетка без стены, случайное направление, без условия соседства."""
        for _ in range(self.first_snake_max_attempts):
            head = Point(
                self.rng.next_int(0, config.width - 1),
                self.rng.next_int(0, config.height - 1),
            )
            if not config.walls[cell_index(head, config.width)]:
                break
        else:
            logger.debug(f"[SnakeBuilder] No free cell after {self.first_snake_max_attempts} attempts")
            return None

        direction = self.rng.choice(list(ALL_DIRECTIONS))
        forbidden = forbidden_points(head, direction, config.width, config.height)
        body = self.build_snake_recursive(config, occupied, head, forbidden, Criterion.ALWAYS_TRUE)
        return self._make_snake(body, direction)

    # ---------- frontier snakes ----------

    def build_next_snake(self, context: "GenerationContext") -> Optional[Snake]:
        """
        Перебирает кандидатов фронтира в случайном порядке.
        Первый, кто достиг max длины, выигрывает сразу; иначе самый длинный.
        """
        max_length = context.config.max_snake_length
        best_body: Optional[List[Point]] = None
        best_dir: Optional[Direction] = None

        for candidate in self.rng.shuffle(context.frontier_candidates()):
            body = self._try_build_next_body(context, candidate.point, candidate.direction)
            if body is None:
                continue
            if len(body) >= max_length:
                return self._make_snake(body, candidate.direction)
            if best_body is None or len(body) > len(best_body):
                best_body = body
                best_dir = candidate.direction

        if best_body is None:
            return None
        return self._make_snake(best_body, best_dir)

    def _try_build_next_body(
        self,
        context: "GenerationContext",
        head: Point,
        direction: Direction,
    ) -> Optional[List[Point]]:
        config = context.config
        if not is_free_at(head, context.occupied, config.walls, config.width, config.height):
            return None
        if not has_clear_los(head, direction, context.occupied, config.width, config.height):
            return None

        forbidden = forbidden_points(head, direction, config.width, config.height)
        return self.build_snake_recursive(
            config, context.occupied, head, forbidden, Criterion.ADJACENT_TO_EXISTING
        )

    # ---------- fill-the-board snakes ----------

    def build_last_snake(self, context: "GenerationContext") -> Optional[Snake]:
        """
        Добивка поля: любая свободная клетка рядом с занятыми.
        Кандидат принимается, только если весь уровень остаётся проходимым.
        """
        config = context.config
        max_length = config.max_snake_length
        candidate_id = self._next_id + 1
        placed = tuple(context.snakes)
        best_body: Optional[List[Point]] = None
        best_dir: Optional[Direction] = None

        for head, direction in self._get_free_candidates(context):
            forbidden = forbidden_points(head, direction, config.width, config.height)
            body = self.build_snake_recursive(
                config, context.occupied, head, forbidden, Criterion.ADJACENT_TO_EXISTING
            )
            trial = GameLevel(
                width=config.width,
                height=config.height,
                snakes=placed + (Snake(id=candidate_id, body=tuple(body), head_direction=direction),),
            )
            if not is_resolvable(trial):
                continue
            if len(body) >= max_length:
                return self._make_snake(body, direction)
            if best_body is None or len(body) > len(best_body):
                best_body = body
                best_dir = direction

        if best_body is None:
            return None
        return self._make_snake(best_body, best_dir)

    def _get_free_candidates(self, context: "GenerationContext") -> List[Tuple[Point, Direction]]:
        config = context.config
        candidates: List[Tuple[Point, Direction]] = []

        for y in range(config.height):
            for x in range(config.width):
                idx = y * config.width + x
                if context.occupied[idx] or config.walls[idx]:
                    continue
                params = CriterionParams(
                    point=Point(x, y),
                    body=(),
                    body_cells=set(),
                    occupied=context.occupied,
                    width=config.width,
                    height=config.height,
                    forbidden=set(),
                )
                if Criterion.ADJACENT_TO_EXISTING.is_satisfied(params):
                    for direction in ALL_DIRECTIONS:
                        candidates.append((Point(x, y), direction))

        return self.rng.shuffle(candidates)

    # ---------- core search ----------

    def build_snake_recursive(
        self,
        config: "GeneratorConfig",
        occupied: Sequence[int],
        head: Point,
        forbidden: Set[Point],
        criterion: Criterion,
    ) -> List[Point]:
        """Самое длинное найденное тело от head (не длиннее max_snake_length)."""
        search = _BodySearch(config, occupied, forbidden, criterion, self.rng, self.straight_preference)
        search.push(head)
        search.best = [head]
        search.extend(prev_dir=None)
        return search.best
