"""
Snake Puzzle - Geometry helpers

Pure functions over a flat grid: cell (x, y) lives at index y * width + x.
"""

from typing import Iterator, List, Optional, Sequence, Set

from ..models import Direction, Point


# ============================================
# BOUNDS
# ============================================

def is_inside(p: Point, width: int, height: int) -> bool:
    """Проверяет что клетка в границах поля."""
    return 0 <= p.x < width and 0 <= p.y < height


def cell_index(p: Point, width: int) -> int:
    return p.y * width + p.x


def line_of_sight(start: Point, direction: Direction, width: int, height: int) -> Iterator[Point]:
    """Клетки строго после start по direction до края поля."""
    current = start.step(direction)
    while is_inside(current, width, height):
        yield current
        current = current.step(direction)


# ============================================
# LINE OF SIGHT
# ============================================

def forbidden_points(head: Point, direction: Direction, width: int, height: int) -> Set[Point]:
    """
    Клетки на пути головы. Тело змейки не должно туда попадать,
    иначе змейка заблокирует сама себя.
    """
    return set(line_of_sight(head, direction, width, height))


def has_clear_los(
    start: Point,
    direction: Direction,
    occupied: Sequence[int],
    width: int,
    height: int,
) -> bool:
    """True если между start (не включая) и краем нет занятых клеток."""
    for p in line_of_sight(start, direction, width, height):
        if occupied[p.y * width + p.x]:
            return False
    return True


# ============================================
# CELLS
# ============================================

def count_valid_cells(width: int, height: int, walls: Sequence[int]) -> int:
    """Количество клеток без стен (знаменатель прогресса)."""
    return sum(1 for i in range(width * height) if not walls[i])


def is_free_at(p: Point, occupied: Sequence[int], walls: Sequence[int], width: int, height: int) -> bool:
    if not is_inside(p, width, height):
        return False
    idx = p.y * width + p.x
    return not occupied[idx] and not walls[idx]


# ============================================
# DIRECTION ORDERING
# ============================================

def get_ordered_directions(
    possible: List[Direction],
    prev_dir: Optional[Direction],
    straight_preference: float,
    rng,
) -> List[Direction]:
    """
    С вероятностью straight_preference сначала пробуем идти прямо.

    Остальные направления остаются в списке, так что перебор с возвратом
    всё равно проверит их, если прямой ход не сработает.
    """
    if prev_dir is None or straight_preference <= 0:
        return possible
    if prev_dir in possible and rng.next() < straight_preference:
        return [prev_dir] + [d for d in possible if d != prev_dir]
    return possible
