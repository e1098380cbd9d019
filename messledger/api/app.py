"""FastAPI application factory"""

import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

import messledger.domain  # noqa: F401  registers the tables on SQLModel.metadata
from messledger.api.error import (
    ClientError,
    client_error_handler,
    ledger_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from messledger.api.routes import balances, periods, transactions
from messledger.domain.errors import LedgerError

logger = logging.getLogger(__name__)


def _init_sentry(config):
    import sentry_sdk

    sentry_sdk.init(
        dsn=config.DSN_SENTRY,
        environment=config.SENTRY_ENVIRONMENT,
        traces_sample_rate=0.0,
    )
    logger.info("Sentry error reporting enabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from messledger import depends

    async with depends.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database schema ready")

    yield

    cache = depends.get_cache_service()
    if hasattr(cache, "close"):
        await cache.close()
    await depends.engine.dispose()


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if config.ENABLE_SENTRY and config.DSN_SENTRY:
        _init_sentry(config)

    app = FastAPI(
        title="Mess Ledger API",
        description="Meal periods, member balances and account transactions of a shared mess",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.ENABLE_LOGGING_MIDDLEWARE:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
            )
            return response

    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(periods.router, prefix=config.API_PREFIX)
    app.include_router(balances.router, prefix=config.API_PREFIX)
    app.include_router(transactions.group_router, prefix=config.API_PREFIX)
    app.include_router(transactions.router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
