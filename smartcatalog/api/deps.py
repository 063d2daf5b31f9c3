# smartcatalog/api/deps.py
import logging
from typing import Optional
from fastapi import Depends, Request
from smartcatalog.core.config import get_settings
from smartcatalog.db.mongo import get_db
from smartcatalog.db.redis import get_redis
from smartcatalog.domain.repositories.product_repo import ProductRepo
from smartcatalog.domain.repositories.search_history_repo import SearchHistoryRepo
from smartcatalog.domain.services.reco_client import RecommendationClient
from smartcatalog.domain.services.search_svc import RequestContext, SearchService
from smartcatalog.utils.cache import cache_get

logger = logging.getLogger(__name__)

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    return db

# Dependency for injecting the Redis client (None when not configured)
def redis_dep():
    return get_redis()

def product_repo(db = Depends(mongo_db)) -> ProductRepo:
    return ProductRepo(db)

def history_repo(db = Depends(mongo_db)) -> SearchHistoryRepo:
    return SearchHistoryRepo(db)

# Built once by the lifespan handler
def reco_client(request: Request) -> RecommendationClient:
    return request.app.state.reco_client

def search_service(
    products: ProductRepo = Depends(product_repo),
    history: SearchHistoryRepo = Depends(history_repo),
    reco: RecommendationClient = Depends(reco_client),
) -> SearchService:
    return SearchService(products=products, history=history, reco=reco)

async def current_user_id(request: Request, redis = Depends(redis_dep)) -> Optional[int]:
    """
    Resolve the session cookie to a user id (sessions are written by the auth service
    as JSON under '<prefix>:<sid>'). Anything missing or broken => anonymous.
    """
    settings = get_settings()
    sid = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not sid or redis is None:
        return None
    try:
        session = await cache_get(redis, f"{settings.session_key_prefix}:{sid}")
    except Exception as e:
        logger.warning(f"Session lookup failed: {e}")
        return None
    if not isinstance(session, dict) or session.get("user_id") is None:
        return None
    try:
        return int(session["user_id"])
    except (TypeError, ValueError):
        return None

def request_context(request: Request, user_id: Optional[int] = Depends(current_user_id)) -> RequestContext:
    return RequestContext(
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
        user_id=user_id,
    )
