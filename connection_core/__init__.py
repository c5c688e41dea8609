# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
# uvicorn connection_core:application --factory
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.middleware.authentication import AuthenticationMiddleware

from connection_core.auth import AuthBackend, on_auth_error
from connection_core.exceptions import AppException
from connection_core.logging import logger
from connection_core.middlewares.correlation_id import CorrelationIDMiddleware
from connection_core.middlewares.prometheus import PrometheusMiddleware
from connection_core.resolver import ConnectionResolver
from connection_core.routing import collect_subrouters
from connection_core.storage.db import Database
from connection_core.utils.error_handler import (
    app_exception_handler,
    request_validation_handler,
)


def lifespan(database: Database | None = None):
    """
    Application lifespan handler.

    Without an explicit database one is built from settings, awaited until
    reachable and disposed on shutdown. A database passed in by the caller
    (tests, embedding applications) is used as-is and left open.
    """

    @asynccontextmanager
    async def wrapper(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Application startup initiated")

        owned = database is None
        db = Database.from_settings() if owned else database
        if owned:
            await db.wait_until_ready()

        app.state.database = db
        app.state.resolver = ConnectionResolver(db)
        logger.info("Initialized database and connection resolver")

        try:
            yield
        finally:
            logger.info("Application shutdown initiated")
            if owned:
                await db.dispose()
            logger.info("Application shutdown complete")

    return wrapper


def application(database: Database | None = None) -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Routers are collected from ``api/http``. Middlewares execute in reverse
    order of registration:
    CorrelationIDMiddleware → AuthenticationMiddleware → PrometheusMiddleware

    Args:
        database: Store to use instead of the one configured in settings.
    """
    app = FastAPI(
        title="Connection core",
        description="Tenant-scoped Relay connections over SQL entities",
        version="1.0.0",
        lifespan=lifespan(database),
    )

    app.include_router(collect_subrouters())

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(
        AuthenticationMiddleware, backend=AuthBackend(), on_error=on_auth_error
    )
    app.add_middleware(CorrelationIDMiddleware)

    return app
