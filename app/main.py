# app/main.py
from fastapi import FastAPI
import logging
import uvicorn
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from app.config import settings
from app.api.routes import products as product_routes
from app.middleware.cors_config import configure_cors
from app.middleware.security_headers import add_security_headers


logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context: log where the proxy forwards to before serving, so a
    missing EXTERNAL_API_BASE is visible in the startup output.
    """
    # --- startup logic ---
    if settings.EXTERNAL_API_BASE:
        logger.info("Forwarding product requests to %s", settings.backend_base_url)
    else:
        logger.warning(
            "EXTERNAL_API_BASE not set, falling back to %s (ENV=%s)",
            settings.backend_base_url,
            settings.ENV,
        )
    if settings.is_production and not settings.CORS_ORIGINS:
        logger.warning("CORS_ORIGINS not set in production; only http://localhost:3000 is allowed")

    yield
    # --- shutdown logic ---
    logger.info("Shutting down %s", settings.SERVICE_NAME)


app = FastAPI(title=settings.SERVICE_NAME, version="0.1.0", lifespan=lifespan)
configure_cors(app)
add_security_headers(app)

app.include_router(product_routes.router)


@app.get("/", tags=["root"])
async def root():
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "backend": urlparse(settings.backend_base_url).netloc,
    }


def run():
    """Serve the proxy with uvicorn (`product-dashboard` console script)."""
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
