import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from studio_access.core import config
from studio_access.core.database import Base, create_session_factory
from studio_access.core.errors import register_exception_handlers
from studio_access.core.logging_setup import configure_logging
from studio_access.core.startup_checks import (
    ensure_migrations_applied,
    validate_database_environment,
    validate_session_secret,
)
from studio_access.middleware.observability import ObservabilityMiddleware
from studio_access.middleware.session_context import SessionContextMiddleware
import studio_access.models  # registra todos os models no metadata

from studio_access.routers.auth import router as auth_router
from studio_access.routers.clients import router as clients_router
from studio_access.routers.master import router as master_router
from studio_access.routers.pages import router as pages_router

configure_logging()

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"
REPO_ROOT = Path(__file__).resolve().parents[1]
ALEMBIC_CONFIG_PATH = Path(
    os.getenv("ALEMBIC_CONFIG", str(REPO_ROOT / "alembic.ini"))
)


def _startup_tasks(session_factory: sessionmaker, database_url: str) -> None:
    try:
        validate_database_environment(database_url)
        validate_session_secret()
        engine = session_factory.kw["bind"]
        if config.IS_DEV and database_url.startswith("sqlite"):
            # Cria tabelas (dev). Em produção, use migrations.
            Base.metadata.create_all(bind=engine)
        else:
            ensure_migrations_applied(engine=engine, alembic_config_path=ALEMBIC_CONFIG_PATH)
    except Exception:
        logger.exception("%s ERROR startup failed", STARTUP_PREFIX)
        raise


def create_app(session_factory: sessionmaker | None = None, *, database_url: str | None = None) -> FastAPI:
    database_url = database_url or config.DATABASE_URL
    if session_factory is None:
        session_factory = create_session_factory(database_url)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        _startup_tasks(session_factory, database_url)
        yield

    app = FastAPI(
        title="Studio Access API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_origin_regex=config.CORS_ALLOW_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SessionContextMiddleware)
    app.add_middleware(ObservabilityMiddleware)

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(master_router)
    app.include_router(clients_router)
    app.include_router(pages_router)

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app


app = create_app()
