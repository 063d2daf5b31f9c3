# smartcatalog/api/v1/routers/health.py
import logging
import subprocess
import time
from fastapi import APIRouter, Depends
from smartcatalog.api.deps import reco_client
from smartcatalog.core.config import get_settings
from smartcatalog.db import mongo
from smartcatalog.db.redis import get_redis  # returns Redis instance or None

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])
START_TIME = time.time()
HEALTH_KEYS = ("mongodb", "redis", "openai_api_key_set")


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


async def _check_mongo() -> str:
    try:
        await mongo.get_db().command("ping")
        return "ok"
    except Exception as e:
        logger.warning(f"Health: mongo ping failed: {e}")
        return f"error: {type(e).__name__}"


async def _check_redis() -> str:
    r = get_redis()
    if r is None:
        return "skipped"  # optional dependency
    try:
        await r.ping()
        return "ok"
    except Exception as e:
        logger.warning(f"Health: redis ping failed: {e}")
        return f"error: {type(e).__name__}"


def _is_ok(v) -> bool:
    return v in ("ok", "skipped") or v is True


@router.get("/health")
async def health(reco = Depends(reco_client)):
    """
    Infrastructure probe. Reports whether an OpenAI key is configured but does
    not call the model; the LLM round-trip lives at /api/search/health.
    """
    settings = get_settings()
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA if settings.GIT_SHA != "unknown" else _git_sha(),
        "uptime_seconds": int(time.time() - START_TIME),
        "mongodb": await _check_mongo(),
        "redis": await _check_redis(),
        "openai_api_key_set": reco.configured,
    }
    status = "ok" if all(_is_ok(checks[k]) for k in HEALTH_KEYS) else "error"
    return {"status": status, "checks": checks, "timestamp": int(time.time())}
