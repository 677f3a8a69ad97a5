# vidtube/core/rate_limiter.py
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Query, status
import redis.asyncio as redis

from vidtube.core.config import settings
from vidtube.core.redis_client import get_redis
from vidtube.api.auth import get_current_user

logger = logging.getLogger(__name__)

RATE_LIMIT_SEARCH_KEY_PREFIX = "rate_limit:user"
RATE_LIMIT_ACTION = "search"

async def rate_limit_search(
    query: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
):
    """
    Ограничивает частоту полнотекстового поиска в ленте (запросы с `query`).
    Фиксированное окно в Redis на пользователя. При ошибках Redis пропускаем запрос (fail open).
    """
    if not query or not settings.search_rate_limit_enabled:
        return True

    redis_client = get_redis()
    if redis_client is None:
        logger.warning("Redis unavailable, search rate limit skipped (fail open).")
        return True

    limit = settings.search_rate_limit_count
    window = settings.search_rate_limit_window_seconds
    key = f"{RATE_LIMIT_SEARCH_KEY_PREFIX}:{user['_id']}:{RATE_LIMIT_ACTION}"

    try:
        # 1. Атомарно увеличиваем счетчик
        current_count = await redis_client.incr(key)

        # 2. Первый запрос в окне - ставим TTL
        if current_count == 1:
            await redis_client.expire(key, window)

        # 3. Проверяем лимит
        if current_count > limit:
            final_ttl = await redis_client.ttl(key)
            retry_after = final_ttl if final_ttl > 0 else window
            logger.warning(f"Rate limit exceeded for user {user['_id']} (search). Count: {current_count}/{limit}. Retry after: {retry_after}s.")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Search limit exceeded ({limit} requests per {window} seconds). Please try again later.",
                headers={"Retry-After": str(retry_after)}
            )

        logger.debug(f"Rate limit check passed for user {user['_id']} (search). Count: {current_count}")
        return True

    except redis.RedisError as e:
        logger.error(f"Redis error during rate limiting check for user {user['_id']}: {e}. Allowing request (Fail open).", exc_info=True)
        return True
