"""
Snake Puzzle - Redis Setup

Redis хранит состояния игровых сессий.
"""

from redis import asyncio as aioredis

from .config import settings


# ============================================
# REDIS
# ============================================

redis_pool = None


async def get_redis():
    """Dependency для получения Redis клиента."""
    global redis_pool

    if redis_pool is None:
        redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )

    return redis_pool


async def close_redis():
    """Закрытие Redis соединения."""
    global redis_pool

    if redis_pool:
        await redis_pool.aclose()
        redis_pool = None
