"""
Snake Puzzle - Game Session

Правила партии на сервере: жизни, удаление змеек, подсказка, рестарт.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..config import settings
from ..models import GameLevel
from .level_loader import level_from_dict, level_to_dict
from .solvability import find_removable_snake, is_line_of_sight_obstructed


logger = logging.getLogger(__name__)


class TapOutcome(str, Enum):
    REMOVED = "removed"
    BLOCKED = "blocked"
    UNKNOWN = "unknown"
    IGNORED = "ignored"


@dataclass
class GameSession:
    """Состояние одной партии."""

    initial_level: GameLevel
    level: GameLevel
    lives: int
    max_lives: int

    @classmethod
    def start(cls, level: GameLevel, max_lives: Optional[int] = None) -> "GameSession":
        if max_lives is None:
            max_lives = settings.DEFAULT_LIVES
        return cls(initial_level=level, level=level, lives=max_lives, max_lives=max_lives)

    # ---------- state ----------

    @property
    def total_snakes(self) -> int:
        return len(self.initial_level.snakes)

    @property
    def is_game_won(self) -> bool:
        return self.level.is_cleared

    @property
    def is_game_over(self) -> bool:
        return self.lives <= 0 and not self.is_game_won

    # ---------- actions ----------

    def tap(self, snake_id: int) -> TapOutcome:
        """
        Заблокированная змейка стоит жизнь, свободная - удаляется.
        Путь проверяется только по серверному уровню: удалённые змейки
        здесь уже отсутствуют, так что ignore_ids клиента не нужны.
        """
        if self.is_game_won or self.is_game_over:
            return TapOutcome.IGNORED

        snake = self.level.snake_by_id(snake_id)
        if snake is None:
            return TapOutcome.UNKNOWN

        if is_line_of_sight_obstructed(self.level, snake):
            self.lives -= 1
            logger.debug(f"[Session] Snake {snake_id} blocked, lives={self.lives}")
            return TapOutcome.BLOCKED

        self.level = self.level.removing_snake(snake_id)
        return TapOutcome.REMOVED

    def hint(self) -> Optional[int]:
        return find_removable_snake(self.level)

    def restart(self):
        self.level = self.initial_level
        self.lives = self.max_lives

    def add_life(self) -> bool:
        """+1 жизнь (не больше max_lives). False если жизни полные или партия окончена."""
        if self.is_game_won or self.lives >= self.max_lives:
            return False
        self.lives += 1
        return True

    # ---------- storage ----------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initial_level": level_to_dict(self.initial_level),
            "level": level_to_dict(self.level),
            "lives": self.lives,
            "max_lives": self.max_lives,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["GameSession"]:
        if not isinstance(raw, dict):
            return None
        initial = level_from_dict(raw.get("initial_level"))
        current = level_from_dict(raw.get("level"))
        if initial is None or current is None:
            return None
        try:
            lives = int(raw.get("lives", 0))
            max_lives = int(raw.get("max_lives", settings.DEFAULT_LIVES))
        except (TypeError, ValueError):
            return None
        return cls(initial_level=initial, level=current, lives=lives, max_lives=max_lives)
