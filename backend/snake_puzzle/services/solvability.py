"""
Snake Puzzle - Solvability Checker

Проходимость уровня симуляцией: убираем любую свободную змейку, пока можем.
Удаление только освобождает клетки, поэтому порядок не влияет на вердикт.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..config import settings
from ..models import GameLevel, Point, Snake
from .geometry import line_of_sight


# ============================================
# GRID
# ============================================

def build_cell_map(level: GameLevel) -> List[Optional[int]]:
    """Плоская карта: индекс клетки -> id змейки (None = пусто)."""
    grid: List[Optional[int]] = [None] * (level.width * level.height)
    for snake in level.snakes:
        for p in snake.body:
            if 0 <= p.x < level.width and 0 <= p.y < level.height:
                grid[p.y * level.width + p.x] = snake.id
    return grid


def _has_clean_los(snake: Snake, grid: Sequence[Optional[int]], width: int, height: int) -> bool:
    """Каждая клетка пути пуста или принадлежит самой змейке."""
    for p in line_of_sight(snake.head, snake.head_direction, width, height):
        owner = grid[p.y * width + p.x]
        if owner is not None and owner != snake.id:
            return False
    return True


def _simulate_removal(level: GameLevel, margin: Optional[int] = None) -> List[int]:
    """Порядок удаления; короче числа змеек, если уровень застрял."""
    if margin is None:
        margin = settings.SOLVABILITY_ITERATION_MARGIN

    grid = build_cell_map(level)
    remaining = list(level.snakes)
    order: List[int] = []
    max_iterations = len(level.snakes) + margin
    iterations = 0

    while remaining and iterations < max_iterations:
        iterations += 1
        removable = next(
            (s for s in remaining if _has_clean_los(s, grid, level.width, level.height)),
            None,
        )
        if removable is None:
            break

        for p in removable.body:
            if 0 <= p.x < level.width and 0 <= p.y < level.height:
                grid[p.y * level.width + p.x] = None
        remaining.remove(removable)
        order.append(removable.id)

    return order


# ============================================
# PUBLIC API
# ============================================

def is_resolvable(level: GameLevel, margin: Optional[int] = None) -> bool:
    """True если все змейки можно убрать (в пределах len(snakes) + margin итераций)."""
    return len(_simulate_removal(level, margin)) == len(level.snakes)


def get_full_solution(level: GameLevel) -> List[int]:
    """Возвращает полное решение (id в порядке удаления)."""
    return _simulate_removal(level)


def get_free_snakes(level: GameLevel) -> List[Snake]:
    """Все змейки, которые можно убрать прямо сейчас."""
    grid = build_cell_map(level)
    return [s for s in level.snakes if _has_clean_los(s, grid, level.width, level.height)]


def find_removable_snake(level: GameLevel) -> Optional[int]:
    """Возвращает ID одной свободной змейки (подсказка)."""
    grid = build_cell_map(level)
    for snake in level.snakes:
        if _has_clean_los(snake, grid, level.width, level.height):
            return snake.id
    return None


def is_line_of_sight_obstructed(
    level: GameLevel,
    snake: Snake,
    ignore_ids: Iterable[int] = (),
) -> bool:
    """
    True если на пути головы есть чужая змейка не из ignore_ids
    (ignore_ids - змейки, которые уже улетают).
    """
    ignored = set(ignore_ids)
    ignored.add(snake.id)
    grid = build_cell_map(level)

    for p in line_of_sight(snake.head, snake.head_direction, level.width, level.height):
        owner = grid[p.y * level.width + p.x]
        if owner is not None and owner not in ignored:
            return True
    return False


# ============================================
# VALIDATION
# ============================================

def validate_level(level: GameLevel, walls: Optional[Sequence[Sequence[bool]]] = None) -> Dict[str, Any]:
    """
    Валидирует корректность уровня.

    walls (если есть) индексируется walls[y][x], True = стена.
    """
    errors: List[str] = []
    seen_ids = set()
    owners: Dict[Point, int] = {}

    for snake in level.snakes:
        if snake.id in seen_ids:
            errors.append(f"Snake {snake.id}: duplicate id")
        seen_ids.add(snake.id)

        if not snake.body:
            errors.append(f"Snake {snake.id}: empty body")
            continue

        if len(set(snake.body)) != len(snake.body):
            errors.append(f"Snake {snake.id}: body crosses itself")

        for i in range(len(snake.body) - 1):
            a, b = snake.body[i], snake.body[i + 1]
            if abs(a.x - b.x) + abs(a.y - b.y) != 1:
                errors.append(f"Snake {snake.id}: not orthogonal at cell {i}")
                break

        for p in snake.body:
            if not (0 <= p.x < level.width and 0 <= p.y < level.height):
                errors.append(f"Snake {snake.id}: cell ({p.x}, {p.y}) out of bounds")
                continue
            if walls is not None and walls[p.y][p.x]:
                errors.append(f"Snake {snake.id}: cell ({p.x}, {p.y}) is a wall")
            other = owners.get(p)
            if other is not None and other != snake.id:
                errors.append(f"Snake {snake.id}: overlaps snake {other} at ({p.x}, {p.y})")
            owners[p] = snake.id

    if walls is not None:
        valid_cells = sum(1 for row in walls[:level.height] for wall in row[:level.width] if not wall)
    else:
        valid_cells = level.width * level.height
    coverage = len(owners) / valid_cells * 100 if valid_cells else 0.0

    solution = get_full_solution(level)
    if len(solution) != len(level.snakes):
        errors.append(f"Level not solvable: {len(solution)}/{len(level.snakes)} snakes removable")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "coverage": coverage,
        "solution": solution,
    }
