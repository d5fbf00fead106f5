import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..config import settings
from ..models import Direction, GameLevel, Point, Snake

logger = logging.getLogger(__name__)

VALID_DIRECTIONS = {d.value for d in Direction}


def calculate_direction(head: Point, neck: Point) -> Direction:
    """Direction pointing away from the neck (used when a file has none)."""
    dx = head.x - neck.x
    dy = head.y - neck.y

    if dx == 1:
        return Direction.RIGHT
    if dx == -1:
        return Direction.LEFT
    if dy == 1:
        return Direction.DOWN
    if dy == -1:
        return Direction.UP
    return Direction.UP


def _normalize_direction(value: Any) -> Optional[Direction]:
    if isinstance(value, Direction):
        return value
    if not isinstance(value, str):
        return None
    direction = value.strip().lower()
    if direction in VALID_DIRECTIONS:
        return Direction(direction)
    return None


def _to_point(raw: Any) -> Optional[Point]:
    try:
        if isinstance(raw, dict):
            return Point(int(raw["x"]), int(raw["y"]))
        if isinstance(raw, (list, tuple)) and len(raw) == 2:
            return Point(int(raw[0]), int(raw[1]))
    except (KeyError, TypeError, ValueError):
        return None
    return None


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _next_free_id(used_ids: set) -> int:
    candidate = max(used_ids, default=0) + 1
    while candidate in used_ids:
        candidate += 1
    return candidate


# ============================================
# SERIALIZE
# ============================================

def snake_to_dict(snake: Snake) -> Dict[str, Any]:
    return {
        "id": snake.id,
        "body": [{"x": p.x, "y": p.y} for p in snake.body],
        "headDirection": snake.head_direction.value,
    }


def level_to_dict(level: GameLevel) -> Dict[str, Any]:
    """Persisted level shape; body order is head first."""
    return {
        "width": level.width,
        "height": level.height,
        "snakes": [snake_to_dict(s) for s in level.snakes],
    }


def level_to_json(level: GameLevel, indent: Optional[Union[int, str]] = None) -> str:
    return json.dumps(level_to_dict(level), ensure_ascii=False, indent=indent)


# ============================================
# DESERIALIZE
# ============================================

def _build_snakes(raw_snakes: List[Any]) -> List[Snake]:
    parsed = []
    for raw_snake in raw_snakes:
        if not isinstance(raw_snake, dict):
            continue

        raw_body = raw_snake.get("body", raw_snake.get("cells", []))
        if not isinstance(raw_body, list):
            continue
        body = [p for p in (_to_point(c) for c in raw_body) if p is not None]
        if not body:
            continue

        direction = _normalize_direction(
            raw_snake.get("headDirection") or raw_snake.get("head_direction") or raw_snake.get("direction")
        )
        if direction is None:
            direction = calculate_direction(body[0], body[1]) if len(body) >= 2 else Direction.UP

        parsed.append((_to_int(raw_snake.get("id")), body, direction))

    # Missing or duplicate ids get fresh numeric ids
    used_ids = {sid for sid, _, _ in parsed if sid is not None}
    seen = set()
    snakes = []
    for sid, body, direction in parsed:
        if sid is None or sid in seen:
            sid = _next_free_id(used_ids)
            used_ids.add(sid)
        seen.add(sid)
        snakes.append(Snake(id=sid, body=tuple(body), head_direction=direction))
    return snakes


def level_from_dict(raw: Any) -> Optional[GameLevel]:
    """Inverse of level_to_dict; tolerant of legacy keys. None if unusable."""
    if not isinstance(raw, dict):
        return None

    width = _to_int(raw.get("width"))
    height = _to_int(raw.get("height"))
    if width is None or height is None:
        grid_raw = raw.get("grid")
        if isinstance(grid_raw, dict):
            width = _to_int(grid_raw.get("width"))
            height = _to_int(grid_raw.get("height"))
    if not width or not height or width <= 0 or height <= 0:
        return None

    raw_snakes = raw.get("snakes", raw.get("arrows", []))
    if not isinstance(raw_snakes, list):
        raw_snakes = []

    return GameLevel(width=width, height=height, snakes=tuple(_build_snakes(raw_snakes)))


def level_from_json(text: str) -> Optional[GameLevel]:
    try:
        return level_from_dict(json.loads(text))
    except json.JSONDecodeError as e:
        logger.warning(f"[LevelLoader] Invalid level JSON: {e}")
        return None


# ============================================
# FILES
# ============================================

def level_file_path(level_num: int, levels_dir: Optional[Path] = None) -> Path:
    return Path(levels_dir or settings.LEVELS_DIR) / f"level_{level_num}.json"


def save_level_to_file(level: GameLevel, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(level_to_json(level, indent="\t") + "\n", encoding="utf-8")
    return path


def load_level_from_file(path: Union[str, Path]) -> Optional[GameLevel]:
    path = Path(path)
    if not path.exists():
        logger.warning(f"[LevelLoader] Level file not found: {path}")
        return None

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"[LevelLoader] Error reading level file {path}: {e}")
        return None

    level = level_from_json(text)
    if level is None:
        logger.warning(f"[LevelLoader] Unusable level file: {path}")
    else:
        logger.debug(f"[LevelLoader] {path.name}: {level.width}x{level.height}, snakes={len(level.snakes)}")
    return level


def load_level(level_num: int, levels_dir: Optional[Path] = None) -> Optional[GameLevel]:
    """Load level_<n>.json (or <n>.json) from the levels directory."""
    base = Path(levels_dir or settings.LEVELS_DIR)
    for name in (f"level_{level_num}.json", f"{level_num}.json"):
        candidate = base / name
        if candidate.exists():
            return load_level_from_file(candidate)

    logger.warning(f"[LevelLoader] Level file not found for level {level_num}")
    return None
