from fastapi import FastAPI
from smartcatalog.core.config import get_settings
from smartcatalog.core.lifespan import lifespan
from smartcatalog.api.v1.routers.health import router as health_router
from smartcatalog.api.v1.routers.products import router as products_router
from smartcatalog.api.v1.routers.search import router as search_router
from smartcatalog.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware

settings = get_settings()
configure_logging(debug=settings.DEBUG)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://www.shop.example.com"
allowed_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["http://localhost:3000"],
    allow_credentials=True,                         # session cookie identifies the user
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(search_router, prefix=settings.api_prefix)      # AI search, history, popular
app.include_router(products_router, prefix=settings.api_prefix)    # catalog CRUD
