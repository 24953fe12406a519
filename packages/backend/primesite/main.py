from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .api import domains_router, payments_router, publish_router, sites_router, uploads_router
from .config import get_settings
from .db.database import get_database, get_drafts_database
from .db.migrations import init_db, init_drafts_db
from .executor.detached import get_detached_tasks
from .log import setup_logging
from .middleware.rate_limit import RateLimitMiddleware

logger = logging.getLogger(__name__)


def _resolve_cors_options() -> tuple[list[str], bool]:
    settings = get_settings()
    allow_origins = settings.cors_allow_origins or ["*"]
    allow_credentials = settings.cors_allow_credentials

    if "*" in allow_origins and allow_credentials:
        logger.warning(
            "CORS_ALLOW_CREDENTIALS is true while CORS_ALLOW_ORIGINS contains '*'; forcing credentials=false"
        )
        allow_credentials = False
    return allow_origins, allow_credentials


@asynccontextmanager
async def _lifespan(_: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_dir, settings.log_level)
    init_db(get_database())
    init_drafts_db(get_drafts_database())
    try:
        yield
    finally:
        # Let in-flight remote mirrors and publish runs land before exit.
        await get_detached_tasks().drain(timeout=settings.shutdown_drain_seconds)


def _check_database(name: str, database) -> str:
    try:
        with database.session() as session:
            session.execute(text("SELECT 1"))
        return "ok"
    except Exception as exc:
        logger.warning("Health check failed for %s: %s", name, exc)
        return f"error: {exc}"


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="PrimeSite API", lifespan=_lifespan)

    allow_origins, allow_credentials = _resolve_cors_options()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware, default_rpm=120, expensive_rpm=20)

    app.include_router(sites_router)
    app.include_router(publish_router)
    app.include_router(payments_router)
    app.include_router(domains_router)
    app.include_router(uploads_router)

    @app.get("/health")
    def health() -> dict:
        checks = {
            "database": _check_database("database", get_database()),
            "local_drafts": _check_database("local_drafts", get_drafts_database()),
        }
        current = get_settings()
        checks["vercel_token"] = "ok" if current.vercel_token else "missing"
        checks["stripe_key"] = "ok" if current.stripe_secret_key else "missing"
        overall = "ok" if all(value == "ok" for value in checks.values()) else "degraded"
        return {"status": overall, "checks": checks}

    return app


app = create_app()

__all__ = ["create_app", "app"]
