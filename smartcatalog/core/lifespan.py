# smartcatalog/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from smartcatalog.db import mongo, redis as r
from smartcatalog.core.config import get_settings
from smartcatalog.domain.repositories.product_repo import ProductRepo
from smartcatalog.domain.repositories.search_history_repo import SearchHistoryRepo
from smartcatalog.domain.services.reco_client import LLMConfig, RecommendationClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # LLM client: one configuration object for the whole process
    app.state.reco_client = RecommendationClient(LLMConfig.from_settings(settings))
    if not app.state.reco_client.configured:
        logger.warning("⚠️ OPENAI_API_KEY not set, searches will report SERVICE_UNAVAILABLE")

    # Mongo is required
    await mongo.connect()
    db = mongo.get_db()
    try:
        await ProductRepo(db).ensure_indexes()
        await SearchHistoryRepo(db).ensure_indexes()
        logger.info("✅ Mongo indexes ensured")
    except Exception as e:
        logger.warning(f"⚠️ Index creation skipped: {e}")

    # Redis optional
    await r.connect()

    # Application runs
    yield

    # --- Shutdown ---
    try:
        await r.disconnect()
    except Exception as e:
        logger.warning(f"Redis disconnect failed: {e}")

    await mongo.disconnect()
    logger.info("🔌 Mongo disconnected")
