# vidtube/core/redis_client.py
import redis.asyncio as redis # async клиент
import logging
from typing import Optional

from vidtube.core.config import settings

logger = logging.getLogger(__name__)

# Один пул на процесс, создается в lifespan или при первом обращении
redis_pool: Optional[redis.ConnectionPool] = None

def create_redis_pool() -> Optional[redis.ConnectionPool]:
    """Создает пул соединений Redis, если его еще нет."""
    global redis_pool
    if redis_pool is not None:
        return redis_pool
    if not settings.redis_url:
        logger.warning("REDIS_URL is empty, search rate limiting is disabled.")
        return None
    try:
        redis_pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            health_check_interval=30,
        )
        logger.info(f"Redis pool ready for {settings.redis_url}")
    except ValueError as e:
        # Некорректный URL: работаем без Redis
        logger.error(f"Invalid REDIS_URL {settings.redis_url!r}: {e}")
        redis_pool = None
    return redis_pool

async def close_redis_pool() -> None:
    """Отключает все соединения пула при остановке приложения."""
    global redis_pool
    if redis_pool is None:
        return
    pool, redis_pool = redis_pool, None
    try:
        await pool.disconnect(inuse_connections=True)
        logger.info("Redis pool closed.")
    except redis.RedisError as e:
        logger.error(f"Error while closing Redis pool: {e}", exc_info=True)

def get_redis() -> Optional[redis.Redis]:
    """Клиент Redis из пула или None, если Redis не настроен."""
    pool = create_redis_pool()
    if pool is None:
        return None
    return redis.Redis(connection_pool=pool)
