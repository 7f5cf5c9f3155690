from fastapi.middleware.cors import CORSMiddleware

from app.config import settings


def configure_cors(app, origins=None):
    # set CORS_ORIGINS to the dashboard's real origin(s) outside development
    allowed = origins or settings.cors_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=86400,
    )
