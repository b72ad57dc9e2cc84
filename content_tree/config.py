import logging
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    MONGO_URI: str
    MONGO_DB_NAME: Optional[str] = None  # Falls back to the path of MONGO_URI

    # JWT Authentication
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Read cache
    CACHE_MAX_ENTRIES: int = 500
    CACHE_TTL_SECONDS: int = 300

    # Slugs
    SLUG_MAX_LENGTH: int = 100

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",  # Local frontend
        "http://localhost:5173",  # Vite dev server
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()

# Set up logging for the whole service
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Log settings loading (redact sensitive values)
logger.info("[CONFIG] Settings loaded successfully")
logger.info(f"[CONFIG] Mongo URI: {settings.MONGO_URI[:10]}**** (redacted)")
logger.info(f"[CONFIG] JWT Secret: {settings.JWT_SECRET_KEY[:4]}**** (redacted)")
logger.info(
    f"[CONFIG] Cache: {settings.CACHE_MAX_ENTRIES} entries, "
    f"{settings.CACHE_TTL_SECONDS}s TTL"
)
