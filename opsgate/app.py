"""FastAPI application factory for the access gateway."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from aiosqlite import connect as aiosqlite_connect
from fastapi import APIRouter, FastAPI
from starlette.middleware.sessions import SessionMiddleware

from opsgate.access import PageDirectory
from opsgate.auth import AuthQueries, Validate, configure_auth_router
from opsgate.page_router import configure_page_router

from .config import configure_logging, load_config_from_env

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from .config import AppConfig

LOGGER = logging.getLogger(__name__)

SESSION_COOKIE = "opsgate_session"


def configure_fastapi_app(
    config: AppConfig,
    pages: PageDirectory | None = None,
) -> FastAPI:
    """Configure and return the FastAPI application.

    :param config: Application configuration
    :param pages: Page directory, the default one if not given
    :return: Configured FastAPI application
    """
    if not Path(config.database_path).parent.exists():
        Path(config.database_path).parent.mkdir(parents=True, exist_ok=True)
        LOGGER.info(
            "Created directory for database at %s",
            Path(config.database_path).parent,
        )

    if not Path(config.database_path).exists():
        LOGGER.info("Database file does not exist at %s", config.database_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[Any, Any]:
        """Application lifespan manager.

        Opens the database, creates the tables and wires the routers.
        """
        LOGGER.info("Operations dashboard gateway is starting")

        async with aiosqlite_connect(config.database_path) as db_connection:
            auth_queries = AuthQueries(db_connection)
            await auth_queries.initialize_tables()
            app.state.auth_queries = auth_queries

            validate = Validate(
                auth_queries,
                config.security_manager,
                surface_lookup_errors=config.surface_lookup_errors,
            )

            auth_router = configure_auth_router(APIRouter(), validate)
            page_router = configure_page_router(APIRouter(), validate, pages)

            app.include_router(auth_router, prefix="/auth", tags=["auth"])
            app.include_router(page_router, tags=["pages"])

            yield

            LOGGER.info("Operations dashboard gateway is shutting down")

    app = FastAPI(
        title="Operations Dashboard Gateway",
        version="0.0.1",
        lifespan=lifespan,
        root_path=config.root_path,
    )

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.security_manager.secret_key,
        session_cookie=SESSION_COOKIE,
        max_age=config.session_max_age,
        same_site="lax",
    )

    return app


def create_app(env_file: str | None = os.environ.get("ENV_FILE", ".env")) -> FastAPI:
    """Create and configure the FastAPI application.

    The default here is for uvicorn command line usage, in which case the user
    should set ENV_FILE environment variable if they want a different file.

    :param env_file: Optional path to the environment configuration file
    :return: Configured FastAPI application
    """
    config = load_config_from_env(env_file)
    configure_logging(config)
    return configure_fastapi_app(config)
