import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from smartcatalog.core.config import get_settings
from smartcatalog.domain.models.search import SearchHistoryEntry
from smartcatalog.domain.repositories.search_history_repo import SearchHistoryRepo
from smartcatalog.domain.services.pagination import build_meta
from smartcatalog.utils.cache import cache_get, cache_key, cache_set

logger = logging.getLogger(__name__)


async def get_search_history(
    repo: SearchHistoryRepo,
    *,
    page: int,
    limit: int,
    success_only: bool = False,
    text_filter: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    user_id: Optional[int] = None,
) -> Dict[str, Any]:
    t0 = time.perf_counter()
    items, total = await repo.query(
        page=page,
        limit=limit,
        success_only=success_only,
        text_filter=text_filter,
        start_date=start_date,
        end_date=end_date,
        user_id=user_id,
    )
    # stored snake_case, served camelCase like every other entity
    data = [SearchHistoryEntry.model_validate(doc).model_dump(mode="json", by_alias=True) for doc in items]
    meta = build_meta(total, page, limit)
    logger.info(
        "history done user=%s items=%s total=%s time=%.3fs",
        user_id or "anonymous", len(items), total, time.perf_counter() - t0,
    )
    return {"data": data, "pagination": meta.model_dump(by_alias=True)}


async def get_popular_searches(
    repo: SearchHistoryRepo,
    redis,
    *,
    limit: int = 10,
    days: int = 30,
    user_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Most frequent successful queries, cached briefly in Redis when available.
    Cache errors never fail the request.
    """
    settings = get_settings()
    key = cache_key("popular", {"limit": limit, "days": days, "user": user_id})

    if redis is not None:
        try:
            cached = await cache_get(redis, key)
        except Exception as e:
            logger.warning("popular redis.get error key=%s err=%s", key, e)
            cached = None
        if cached is not None:
            logger.info("popular cache_hit key=%s items=%s", key, len(cached))
            return cached

    t0 = time.perf_counter()
    rows = await repo.popular(limit=limit, days=days, user_id=user_id)
    logger.info("popular db_ok items=%s db_time=%.3fs", len(rows), time.perf_counter() - t0)

    if redis is not None:
        try:
            await cache_set(redis, key, rows, ex=settings.popular_cache_ttl)
        except Exception as e:
            logger.warning("popular redis.set error key=%s err=%s", key, e)
    return rows
