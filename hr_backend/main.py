"""
Entry point for the HR records backend.

This module creates the FastAPI application, includes all API routers and
registers the error handlers. Run with:

    uvicorn hr_backend.main:app --reload

"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from .core.db import engine, SessionLocal
from .models import Base
from .services.auth_seed import seed_admin_user

from .api import api_router
from .core.config import document_storage_dir, get_app_env
from .core.errors import HRError, hr_error_handler, log_exception, request_validation_handler


def create_app() -> FastAPI:
    app = FastAPI(title="HR Records Backend", version="0.1.0")
    # Include API routers
    app.include_router(api_router)
    app.add_exception_handler(HRError, hr_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.on_event("startup")
    def _init_db() -> None:
        logger = logging.getLogger("startup")
        env = get_app_env()
        storage_root = document_storage_dir()
        try:
            storage_root.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            log_exception(logger, "Document storage dir unavailable", extra={"path": str(storage_root)}, exc=exc)
            if env == "prod":
                raise
        if os.getenv("AUTO_CREATE_DB", "true").lower() in {"1", "true", "yes"}:
            try:
                Base.metadata.create_all(bind=engine)
            except Exception as exc:
                log_exception(logger, "DB create_all failed", exc=exc)
                if env == "prod":
                    raise
        if os.getenv("AUTO_SEED_ADMIN_USER", "true").lower() in {"1", "true", "yes"}:
            try:
                with SessionLocal() as db:
                    seed_admin_user(db)
            except Exception as exc:
                log_exception(logger, "Seed admin user failed", exc=exc)
                if env == "prod":
                    raise
        logger.info("Startup complete env=%s storage=%s", env, storage_root)

    return app


app = create_app()
