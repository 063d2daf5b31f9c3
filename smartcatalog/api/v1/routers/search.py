# smartcatalog/api/v1/routers/search.py
from datetime import datetime, timezone
from typing import Optional
import logging
import time

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from smartcatalog.api.deps import (
    current_user_id,
    history_repo,
    redis_dep,
    reco_client,
    request_context,
    search_service,
)
from smartcatalog.domain.services.history_svc import get_popular_searches, get_search_history
from smartcatalog.domain.services.search_svc import RequestContext, SearchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.post("/search")
async def search(
    request: Request,
    ctx: RequestContext = Depends(request_context),
    svc: SearchService = Depends(search_service),
):
    """
    AI-powered product search.
    Body: {query, filters?: {category, minPrice, maxPrice, brand, attributes}, sortBy?, page?, limit?}
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None  # empty or malformed body, reported as MISSING_QUERY
    res = await svc.search(payload, ctx)
    return JSONResponse(status_code=res.status_code, content=res.body)


@router.get("/search/health")
async def search_health(reco = Depends(reco_client)):
    """LLM liveness: 200 when the model answers the probe, 503 otherwise."""
    logger.info("Running LLM health check...")
    t0 = time.perf_counter()
    try:
        healthy = await reco.health_check()
    except Exception as e:
        ms = int((time.perf_counter() - t0) * 1000)
        logger.error(f"Health check failed time={ms}ms: {e}")
        return JSONResponse(status_code=503, content={
            "success": False,
            "status": "error",
            "message": "Health check failed",
            "execution_time_ms": ms,
            "timestamp": _now_iso(),
        })

    ms = int((time.perf_counter() - t0) * 1000)
    if healthy:
        return JSONResponse(status_code=200, content={
            "success": True,
            "status": "healthy",
            "message": "LLM service is working correctly",
            "execution_time_ms": ms,
            "timestamp": _now_iso(),
        })
    return JSONResponse(status_code=503, content={
        "success": False,
        "status": "unhealthy",
        "message": "LLM service is not responding correctly",
        "execution_time_ms": ms,
        "timestamp": _now_iso(),
    })


@router.get("/search/history")
async def search_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    success_only: bool = Query(False, alias="successOnly"),
    query: Optional[str] = Query(None, description="Case-insensitive substring of the query text"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    repo = Depends(history_repo),
    user_id: Optional[int] = Depends(current_user_id),
):
    """Search history of the current user (anonymous callers see anonymous searches)."""
    logger.info(f"Request: search_history user={user_id or 'anonymous'} page={page} limit={limit}")
    try:
        res = await get_search_history(
            repo,
            page=page,
            limit=limit,
            success_only=success_only,
            text_filter=query,
            start_date=start_date,
            end_date=end_date,
            user_id=user_id,
        )
    except Exception:
        logger.exception("Error fetching search history")
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "HISTORY_FETCH_ERROR",
            "message": "Failed to fetch search history",
        })

    return {
        "success": True,
        **res,
        "userSpecific": user_id is not None,
        "currentUser": user_id,
    }


@router.get("/search/popular")
async def popular_searches(
    limit: int = Query(10, ge=1, le=100),
    days: int = Query(30, ge=1, le=365),
    repo = Depends(history_repo),
    redis = Depends(redis_dep),
    user_id: Optional[int] = Depends(current_user_id),
):
    """Most frequent successful queries; global for anonymous callers."""
    logger.info(f"Request: popular_searches user={user_id or 'anonymous'} days={days} limit={limit}")
    try:
        rows = await get_popular_searches(repo, redis, limit=limit, days=days, user_id=user_id)
    except Exception:
        logger.exception("Error fetching popular searches")
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "POPULAR_SEARCHES_ERROR",
            "message": "Failed to fetch popular searches",
        })

    return {
        "success": True,
        "data": rows,
        "period": f"{days} days",
        "limit": limit,
        "userSpecific": user_id is not None,
        "currentUser": user_id,
    }
