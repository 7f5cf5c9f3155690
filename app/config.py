# app/config.py
from typing import List, Optional
from functools import lru_cache

from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# fallbacks used when EXTERNAL_API_BASE is not set
DEVELOPMENT_API_BASE = "http://localhost:8080"
PRODUCTION_API_BASE = "https://technical-test-be-production.up.railway.app"


class Settings(BaseSettings):
    ENV: str = "development"
    SERVICE_NAME: str = "Product Dashboard API"
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # external product backend
    EXTERNAL_API_BASE: Optional[str] = None
    EXTERNAL_API_PREFIX: str = "/api/web/v1"
    READ_TIMEOUT: float = 10.0   # seconds, list / get
    WRITE_TIMEOUT: float = 15.0  # seconds, create / update

    # pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # comma separated list; empty means localhost:3000 only
    CORS_ORIGINS: str = ""

    # client side
    PROXY_BASE_URL: str = "http://localhost:8000/api"
    SEARCH_DEBOUNCE_SECONDS: float = 0.3

    # development identity provider. No secret is shipped with the code:
    # IDENTITY_SECRET_KEY must be supplied through the environment or .env.
    IDENTITY_SECRET_KEY: Optional[str] = None
    IDENTITY_ALGORITHM: str = "HS256"
    IDENTITY_TOKEN_MINUTES: int = 60
    IDENTITY_REFRESH_MARGIN_SECONDS: int = 300

    # Example .env:
    # ENV=production
    # EXTERNAL_API_BASE=https://products.example.com
    # IDENTITY_SECRET_KEY=...

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENV.strip().lower() in ("production", "prod")

    @property
    def backend_base_url(self) -> str:
        """
        Resolve the external backend root. An explicit EXTERNAL_API_BASE wins,
        otherwise the loopback address in development and the fixed production
        host everywhere else.
        """
        base = (self.EXTERNAL_API_BASE or "").strip()
        if not base:
            base = PRODUCTION_API_BASE if self.is_production else DEVELOPMENT_API_BASE
        return base.rstrip("/") + "/" + self.EXTERNAL_API_PREFIX.strip("/")

    @property
    def cors_origins(self) -> List[str]:
        origins = [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
        return origins or ["http://localhost:3000"]


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
