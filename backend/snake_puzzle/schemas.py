"""
Snake Puzzle - Pydantic Schemas

Все схемы валидации в одном файле.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import settings


# ============================================
# LEVEL (persisted shape)
# ============================================

class Cell(BaseModel):
    """Клетка на поле."""
    x: int
    y: int


class SnakeSchema(BaseModel):
    """Змейка: body[0] = голова."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    body: List[Cell] = Field(min_length=1)
    head_direction: Literal["up", "down", "left", "right"] = Field(alias="headDirection")


class LevelSchema(BaseModel):
    """Уровень."""
    width: int = Field(gt=0, le=settings.MAX_BOARD_SIZE)
    height: int = Field(gt=0, le=settings.MAX_BOARD_SIZE)
    snakes: List[SnakeSchema] = []


class LevelMeta(BaseModel):
    """Метаданные сгенерированного уровня."""
    snake_count: int
    coverage: float
    resolvable: bool
    elapsed_ms: float


# ============================================
# GENERATION
# ============================================

class GenerateRequest(BaseModel):
    """Запрос генерации."""
    width: int = Field(gt=0, le=settings.MAX_BOARD_SIZE)
    height: int = Field(gt=0, le=settings.MAX_BOARD_SIZE)
    max_snake_length: int = Field(gt=0, le=settings.MAX_SNAKE_LENGTH_LIMIT)
    fill_the_board: bool = False
    seed: Optional[int] = Field(default=None, ge=0)
    # ASCII-маска: '#' = стена
    wall_mask: Optional[List[str]] = None


class GenerateResponse(BaseModel):
    """Ответ генерации."""
    seed: int
    level: LevelSchema
    meta: LevelMeta


class ValidateResponse(BaseModel):
    """Результат проверки уровня."""
    valid: bool
    errors: List[str]
    coverage: float
    solution: List[int]


# ============================================
# HINTS / LINE OF SIGHT
# ============================================

class HintRequest(BaseModel):
    """Запрос подсказки."""
    level: LevelSchema


class HintResponse(BaseModel):
    """Ответ подсказки (None - свободных змеек нет)."""
    snake_id: Optional[int] = None


class ObstructionRequest(BaseModel):
    """Заблокирован ли путь головы змейки."""
    level: LevelSchema
    snake_id: int
    ignore_ids: List[int] = []


class ObstructionResponse(BaseModel):
    obstructed: bool


# ============================================
# SESSIONS
# ============================================

class NewSessionRequest(GenerateRequest):
    """Новая партия = генерация + жизни."""
    lives: Optional[int] = Field(default=None, gt=0)


class SessionState(BaseModel):
    """Состояние партии."""
    session_id: str
    level: LevelSchema
    lives: int
    max_lives: int
    total_snakes: int
    is_game_won: bool
    is_game_over: bool


class TapRequest(BaseModel):
    snake_id: int


class TapResponse(BaseModel):
    outcome: Literal["removed", "blocked", "unknown", "ignored"]
    state: SessionState


class LifeResponse(BaseModel):
    """Ответ на +1 жизнь (success=False если жизни полные)."""
    success: bool
    state: SessionState
