"""
Snake Puzzle - Game API

1. /generate - генерация проходимого уровня (в thread pool, CPU-bound)
2. /validate, /hint, /obstruction - запросы к готовому уровню
3. /level/{n} - заранее сгенерированные уровни (scripts/generate_levels.py)
4. /sessions - партия на сервере (жизни, удаление, подсказка, рестарт)
"""

import secrets
import time
from functools import lru_cache
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..database import get_redis
from ..middleware.security import limiter, validate_json_size
from ..models import GameLevel
from ..schemas import (
    GenerateRequest, GenerateResponse, LevelMeta, LevelSchema,
    HintRequest, HintResponse, ObstructionRequest, ObstructionResponse,
    ValidateResponse, NewSessionRequest, SessionState, TapRequest, TapResponse, LifeResponse,
)
from ..services.board_shape import MaskBoardShape
from ..services.game_session import GameSession
from ..services.generator import generate_solvable_level
from ..services.level_loader import level_from_dict, level_to_dict, load_level
from ..services.level_store import LevelStore, new_session_id
from ..services.solvability import find_removable_snake, is_line_of_sight_obstructed, validate_level


router = APIRouter(prefix="/game", tags=["game"], dependencies=[Depends(validate_json_size)])


# ============================================
# CONVERSION
# ============================================

def to_domain(schema: LevelSchema) -> GameLevel:
    level = level_from_dict(schema.model_dump(by_alias=True))
    if level is None:
        raise HTTPException(status_code=400, detail="Invalid level")
    return level


def to_schema(level: GameLevel) -> LevelSchema:
    return LevelSchema.model_validate(level_to_dict(level))


# ============================================
# GENERATION
# ============================================

def check_generation_limits(request: GenerateRequest):
    """Добивка поля проверяет проходимость на каждого кандидата, поэтому поле меньше."""
    limit = settings.API_MAX_FILL_BOARD_SIZE
    if request.fill_the_board and (request.width > limit or request.height > limit):
        raise HTTPException(
            status_code=400,
            detail=f"fill_the_board is limited to {limit}x{limit} boards",
        )


def _generate(request: GenerateRequest) -> Tuple[GameLevel, int, LevelMeta]:
    """Синхронная генерация (вызывается из thread pool)."""
    seed = request.seed if request.seed is not None else secrets.randbits(31)
    shape = MaskBoardShape(request.wall_mask) if request.wall_mask else None

    started = time.monotonic()
    level = generate_solvable_level(
        width=request.width,
        height=request.height,
        max_snake_length=request.max_snake_length,
        fill_the_board=request.fill_the_board,
        board_shape=shape,
        seed=seed,
    )
    elapsed_ms = (time.monotonic() - started) * 1000

    walls = shape.get_walls(level.width, level.height) if shape else None
    report = validate_level(level, walls=walls)

    meta = LevelMeta(
        snake_count=len(level.snakes),
        coverage=round(report["coverage"], 2),
        resolvable=len(report["solution"]) == len(level.snakes),
        elapsed_ms=round(elapsed_ms, 1),
    )
    return level, seed, meta


@router.post("/generate", response_model=GenerateResponse)
@limiter.limit(f"{settings.RATE_LIMIT_GENERATE}/minute")
async def generate_level(request: Request, payload: GenerateRequest):
    check_generation_limits(payload)
    level, seed, meta = await run_in_threadpool(_generate, payload)
    return GenerateResponse(seed=seed, level=to_schema(level), meta=meta)


@router.post("/validate", response_model=ValidateResponse)
async def validate(payload: LevelSchema):
    report = validate_level(to_domain(payload))
    return ValidateResponse(**report)


@router.post("/hint", response_model=HintResponse)
async def get_hint(payload: HintRequest):
    return HintResponse(snake_id=find_removable_snake(to_domain(payload.level)))


@router.post("/obstruction", response_model=ObstructionResponse)
async def check_obstruction(payload: ObstructionRequest):
    level = to_domain(payload.level)
    snake = level.snake_by_id(payload.snake_id)
    if snake is None:
        raise HTTPException(status_code=404, detail="Snake not found")
    return ObstructionResponse(
        obstructed=is_line_of_sight_obstructed(level, snake, payload.ignore_ids)
    )


# ============================================
# PRE-GENERATED LEVELS (in-memory LRU)
# ============================================

@lru_cache(maxsize=256)
def _cached_level(level_num: int) -> Optional[GameLevel]:
    """LRU кэш загруженных уровней. JSON файлы не меняются в рантайме."""
    return load_level(level_num)


@router.get("/level/{level_num}", response_model=LevelSchema)
async def get_level(level_num: int):
    if level_num < 1:
        raise HTTPException(status_code=400, detail="Invalid level number")

    level = _cached_level(level_num)
    if level is None:
        raise HTTPException(status_code=404, detail="Level not found")
    return to_schema(level)


# ============================================
# SESSIONS
# ============================================

async def get_level_store(redis=Depends(get_redis)) -> LevelStore:
    return LevelStore(redis)


def _state(session_id: str, session: GameSession) -> SessionState:
    return SessionState(
        session_id=session_id,
        level=to_schema(session.level),
        lives=session.lives,
        max_lives=session.max_lives,
        total_snakes=session.total_snakes,
        is_game_won=session.is_game_won,
        is_game_over=session.is_game_over,
    )


async def _load_session(store: LevelStore, session_id: str) -> GameSession:
    session = await store.load(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/sessions", response_model=SessionState)
@limiter.limit(f"{settings.RATE_LIMIT_GENERATE}/minute")
async def create_session(
    request: Request,
    payload: NewSessionRequest,
    store: LevelStore = Depends(get_level_store),
):
    check_generation_limits(payload)
    level, _, _ = await run_in_threadpool(_generate, payload)
    session = GameSession.start(level, max_lives=payload.lives)
    session_id = new_session_id()
    await store.save(session_id, session)
    return _state(session_id, session)


@router.get("/sessions/{session_id}", response_model=SessionState)
async def get_session(session_id: str, store: LevelStore = Depends(get_level_store)):
    session = await _load_session(store, session_id)
    return _state(session_id, session)


@router.post("/sessions/{session_id}/tap", response_model=TapResponse)
@limiter.limit(f"{settings.RATE_LIMIT_GAME}/minute")
async def tap_snake(
    request: Request,
    session_id: str,
    payload: TapRequest,
    store: LevelStore = Depends(get_level_store),
):
    session = await _load_session(store, session_id)
    outcome = session.tap(payload.snake_id)
    await store.save(session_id, session)
    return TapResponse(outcome=outcome.value, state=_state(session_id, session))


@router.post("/sessions/{session_id}/hint", response_model=HintResponse)
async def session_hint(session_id: str, store: LevelStore = Depends(get_level_store)):
    session = await _load_session(store, session_id)
    return HintResponse(snake_id=session.hint())


@router.post("/sessions/{session_id}/restart", response_model=SessionState)
async def restart_session(session_id: str, store: LevelStore = Depends(get_level_store)):
    session = await _load_session(store, session_id)
    session.restart()
    await store.save(session_id, session)
    return _state(session_id, session)


@router.post("/sessions/{session_id}/life", response_model=LifeResponse)
@limiter.limit(f"{settings.RATE_LIMIT_GAME}/minute")
async def restore_life(
    request: Request,
    session_id: str,
    store: LevelStore = Depends(get_level_store),
):
    session = await _load_session(store, session_id)
    added = session.add_life()
    if added:
        await store.save(session_id, session)
    return LifeResponse(success=added, state=_state(session_id, session))


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, store: LevelStore = Depends(get_level_store)) -> dict:
    deleted = await store.delete(session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"deleted": True}
