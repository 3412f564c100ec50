"""
FastAPI application entry point for the wellness backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wellness.config import Settings, get_settings
from wellness.dependencies import Backends, build_backends
from wellness.errors import register_exception_handlers
from wellness.routes import router, spotify_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None, backends: Optional[Backends] = None
) -> FastAPI:
    settings = settings or get_settings()
    backends = backends or build_backends(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s starting", settings.app_name)
        yield
        backends.close()
        logger.info("%s stopped", settings.app_name)

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.backends = backends

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(spotify_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
