from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env at project root before settings are read.
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from intake_backend.config import Settings, get_settings
from intake_backend.db import configure_engine, init_db
from intake_backend.errors import register_exception_handlers
from intake_backend.logging_config import configure_logging
from intake_backend.routers import admin_leads as admin_leads_router
from intake_backend.routers import admin_users as admin_users_router
from intake_backend.routers import auth as auth_router
from intake_backend.routers import files as files_router
from intake_backend.routers import intake as intake_router
from intake_backend.routers import leads as leads_router

logger = logging.getLogger("intake_backend.main")


def create_app(settings: Optional[Settings] = None, *, init_database: bool = True) -> FastAPI:
    """
    Build the application.

    Settings are resolved once here and shared with every dependency through
    get_settings. Tests pass their own Settings and skip database setup.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting %s...", settings.app_name)
        if init_database:
            engine = configure_engine(settings.database_url)
            init_db(engine)
        settings.file_upload_base_dir.mkdir(parents=True, exist_ok=True)
        logger.info("%s started.", settings.app_name)
        yield
        logger.info("%s shutting down.", settings.app_name)

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.dependency_overrides[get_settings] = lambda: settings

    # CORS for the public form + local dev
    origins = settings.cors_origins or [settings.public_base_url]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, debug=settings.debug)

    # Public intake + presigned file transfer
    app.include_router(intake_router.router)
    app.include_router(files_router.router)

    # Dashboard (bearer-token gated)
    app.include_router(auth_router.router)
    app.include_router(leads_router.router)
    app.include_router(admin_leads_router.router)
    app.include_router(admin_users_router.router)

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok", "app": settings.app_name}

    return app
