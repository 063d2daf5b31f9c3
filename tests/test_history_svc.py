import json
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from smartcatalog.domain.services.history_svc import get_popular_searches, get_search_history
from smartcatalog.utils.cache import cache_key

ROWS = [{"query": "laptop", "searchCount": 3}]
STORED_ENTRY = {
    "query": "laptop",
    "results_count": 2,
    "execution_time_ms": 840,
    "success": True,
    "error_type": None,
    "user_agent": "pytest",
    "ip_address": "127.0.0.1",
    "filters": {"category": "Electronics"},
    "sort_by": "relevance",
    "user_id": 5,
    "created_at": datetime(2024, 3, 1, 12, 0),
}


@pytest.fixture
def repo():
    r = MagicMock()
    r.popular = AsyncMock(return_value=ROWS)
    r.query = AsyncMock(return_value=([STORED_ENTRY], 41))
    return r


@pytest.fixture
def redis():
    r = MagicMock()
    r.get = AsyncMock(return_value=None)
    r.set = AsyncMock()
    return r


@pytest.mark.asyncio
async def test_popular_without_redis(repo):
    assert await get_popular_searches(repo, None, limit=5, days=7) == ROWS
    repo.popular.assert_awaited_once_with(limit=5, days=7, user_id=None)


@pytest.mark.asyncio
async def test_popular_cache_miss_populates_cache(repo, redis):
    rows = await get_popular_searches(repo, redis, limit=5, days=7, user_id=3)

    assert rows == ROWS
    key = cache_key("popular", {"limit": 5, "days": 7, "user": 3})
    redis.set.assert_awaited_once_with(key, json.dumps(ROWS), ex=300)


@pytest.mark.asyncio
async def test_popular_cache_hit_skips_db(repo, redis):
    redis.get.return_value = json.dumps([{"query": "cached", "searchCount": 9}])

    rows = await get_popular_searches(repo, redis, limit=5, days=7)

    assert rows == [{"query": "cached", "searchCount": 9}]
    repo.popular.assert_not_awaited()


@pytest.mark.asyncio
async def test_popular_redis_errors_are_ignored(repo, redis):
    redis.get.side_effect = ConnectionError("down")
    redis.set.side_effect = ConnectionError("down")

    assert await get_popular_searches(repo, redis) == ROWS


@pytest.mark.asyncio
async def test_history_pagination(repo):
    res = await get_search_history(repo, page=2, limit=20, user_id=5)

    assert res["data"] == [{
        "query": "laptop",
        "resultsCount": 2,
        "executionTimeMs": 840,
        "success": True,
        "errorType": None,
        "userAgent": "pytest",
        "ipAddress": "127.0.0.1",
        "filters": {"category": "Electronics"},
        "sortBy": "relevance",
        "userId": 5,
        "createdAt": "2024-03-01T12:00:00",
    }]
    assert res["pagination"] == {
        "page": 2, "limit": 20, "total": 41,
        "totalPages": 3, "hasNextPage": True, "hasPrevPage": True,
    }
    assert repo.query.await_args.kwargs["user_id"] == 5


def test_cache_key_is_stable():
    assert cache_key("popular", {"a": 1, "b": 2}) == cache_key("popular", {"b": 2, "a": 1})
    assert cache_key("popular", {"a": 1}) != cache_key("popular", {"a": 2})
    assert cache_key("popular", {}).startswith("popular:")
