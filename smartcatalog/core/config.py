from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "SmartCatalogSearch"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "smartcatalog"
    MONGO_TLS: bool = False  # set True for Atlas / SRV URIs

    # Redis (optional: sessions + popular-search cache)
    REDIS_URL: str = ""

    # Cache config
    popular_cache_ttl: int = 5 * 60              # 5 minutes

    # Sessions (written by the auth service, read here)
    SESSION_COOKIE_NAME: str = "sid"
    session_key_prefix: str = "session"

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_SEARCH_MODEL: str = "gpt-3.5-turbo"
    openai_timeout_s: int = 30          # seconds, recommendation call
    openai_health_timeout_s: int = 10   # seconds, liveness probe

    # LLM call shape
    llm_temperature: float = 0.1
    llm_max_tokens: int = 1000

    # Retry / backoff
    llm_max_retries: int = 3
    llm_retry_base_delay_s: float = 1.0
    llm_retry_max_delay_s: float = 10.0
    llm_retry_multiplier: float = 2.0

    # API
    api_prefix: str = "/api"
    ALLOWED_ORIGINS: str = ""  # CSV

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
