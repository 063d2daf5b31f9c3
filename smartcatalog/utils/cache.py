import hashlib
import json
from typing import Any
from redis.asyncio import Redis

def cache_key(prefix: str, data: Any) -> str:
    """Stable key from a JSON-able payload: '<prefix>:<md5>'."""
    raw = json.dumps(data, sort_keys=True, default=str)
    return f"{prefix}:{hashlib.md5(raw.encode()).hexdigest()}"

async def cache_get(redis: Redis, key: str):
    if val := await redis.get(key):
        return json.loads(val)
    return None

async def cache_set(redis: Redis, key: str, value, ex: int = 60):
    await redis.set(key, json.dumps(value, default=str), ex=ex)
