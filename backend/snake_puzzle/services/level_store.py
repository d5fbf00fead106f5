"""
Snake Puzzle - Session Store

Сессии лежат в Redis как JSON (уровни - в сохраняемом формате).
"""

import json
import logging
import secrets
from typing import Optional

from ..config import settings
from .game_session import GameSession


logger = logging.getLogger(__name__)

KEY_PREFIX = "snake_puzzle:session:"


def new_session_id() -> str:
    return secrets.token_urlsafe(12)


class LevelStore:
    def __init__(self, redis, ttl_seconds: Optional[int] = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.SESSION_TTL_SECONDS

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    async def save(self, session_id: str, session: GameSession):
        await self.redis.set(
            self._key(session_id),
            json.dumps(session.to_dict(), ensure_ascii=False),
            ex=self.ttl_seconds,
        )

    async def load(self, session_id: str) -> Optional[GameSession]:
        raw = await self.redis.get(self._key(session_id))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"[Session] Corrupted session {session_id}: {e}")
            return None
        return GameSession.from_dict(data)

    async def delete(self, session_id: str) -> bool:
        return bool(await self.redis.delete(self._key(session_id)))
