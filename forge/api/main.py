from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.responses import Response
from structlog.contextvars import bind_contextvars, clear_contextvars

from forge.api.routes import register_routes
from forge.core.config import Settings, get_settings
from forge.core.logging import setup_logging
from forge.infrastructure.db.session import create_engine, create_session_factory
from forge.infrastructure.environment import Environment, build_environment

logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    *,
    environment: Environment | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Application factory for the classroom API.

    Without an ``environment`` the lifespan builds the database engine and the
    composition root from settings; tests pass a prebuilt one instead.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "service_startup",
            service=settings.app_name,
            environment=settings.environment,
            version=settings.version,
        )
        if environment is not None:
            yield
            return

        engine = create_engine(settings)
        factory = create_session_factory(engine)
        app.state.session_factory = factory
        app.state.environment = build_environment(settings, session_factory=factory)
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("service_shutdown", service=settings.app_name)

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    if environment is not None:
        app.state.environment = environment
        app.state.session_factory = session_factory

    cors_origins = [
        "http://localhost:3000",  # Next.js dev
        "http://localhost:5173",  # Vite dev
    ]
    if settings.environment in ["local", "development"]:
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials="*" not in cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)

    @app.middleware("http")
    async def correlation_id_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid4()))
        bind_contextvars(
            request_id=request_id,
            path=str(request.url.path),
            method=request.method,
        )
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_contextvars()

    return app


app = create_app()
