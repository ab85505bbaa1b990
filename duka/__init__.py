"""Application factory and top-level wiring for the Duka Audit shop tracker.

This module brings together configuration, database setup, HTML templates,
API routers and error handling. ``create_app`` builds everything explicitly
so tests (and alternative deployments) can hand in their own settings and
database engine instead of relying on process-wide singletons.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import AppSettings, get_settings
from .core.errors import (
    DukaError,
    duka_error_handler,
    http_exception_handler,
    storage_error_handler,
    validation_exception_handler,
)
from .core.jinja import get_templates
from .db.migrate import run_migrations
from .db.seed import seed_catalog
from .db.session import Base, build_engine, build_session_factory
from .middlewares import RequestIdMiddleware

# Importing the SQLAlchemy models registers them with the metadata. Without
# this step ``Base.metadata.create_all`` would not know about our tables.
from . import models as _models  # noqa: F401
from .routers import api_categories, api_items, api_sales, api_subcategories, ui

logger = logging.getLogger("duka")


def create_app(settings: AppSettings | None = None, engine: Engine | None = None) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or build_engine(settings.database_url)
    session_factory = build_session_factory(engine)

    # ---------- DB init/migrations ----------
    # ``create_all`` builds brand-new databases, ``run_migrations`` upgrades
    # files written by earlier versions.
    Base.metadata.create_all(bind=engine)
    run_migrations(engine)
    if settings.SEED_CATALOG:
        with session_factory() as db:
            seed_catalog(db)

    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.templates = get_templates(settings)

    # ---------- Middleware ----------
    app.add_middleware(RequestIdMiddleware)
    if settings.ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.ALLOWED_ORIGINS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.mount("/static", StaticFiles(directory=str(settings.static_dir)), name="static")

    # ---------- Routers ----------
    app.include_router(api_categories.router)
    app.include_router(api_subcategories.router)
    app.include_router(api_items.router)
    app.include_router(api_sales.router)
    app.include_router(ui.router)

    # ---------- Exception handling ----------
    app.add_exception_handler(DukaError, duka_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, bool]:
        return {"ok": True}

    logger.info("app.created", extra={"extra_data": {"database": engine.url.render_as_string(hide_password=True)}})
    return app


__all__ = ["create_app"]
