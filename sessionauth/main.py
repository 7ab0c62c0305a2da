# sessionauth/main.py
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sessionauth.auth import auth_router
from sessionauth.core.settings import Settings, get_settings
from sessionauth.utils.logging_setup import setup_logging


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or get_settings()

    setup_logging(
        "sessionauth",
        level=app_settings.log_level,
        log_file=app_settings.log_file,
    )

    app = FastAPI(
        title="sessionauth API",
        version="0.1.0",
    )

    # Cookies only cross origins with credentials allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix=app_settings.api_prefix)

    return app


# Uvicorn entrypoint: uvicorn sessionauth.main:app --reload
app = create_app()
