# smartcatalog/db/redis.py
import logging
import redis.asyncio as redis
from smartcatalog.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()
redis_client: redis.Redis | None = None


async def connect():
    """
    Connect Redis if REDIS_URL is set.
    When unset or unreachable, log a warning and keep running without it.
    """
    global redis_client
    if not settings.REDIS_URL:
        logger.warning("No REDIS_URL configured, skipping Redis connection.")
        redis_client = None
        return

    try:
        logger.info(f"Connecting to Redis at {settings.REDIS_URL}")
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        await redis_client.ping()
        logger.info("✅ Redis connection successful")
    except Exception as e:
        logger.warning(f"⚠️ Failed to connect to Redis: {e}")
        redis_client = None  # fallback: Redis disabled


async def disconnect():
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis disconnected")


def get_redis() -> redis.Redis | None:
    """
    Returns None when Redis is not configured or unavailable.
    Callers must handle it.
    """
    return redis_client
