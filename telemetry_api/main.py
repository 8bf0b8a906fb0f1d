from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.engine import Engine

from telemetry_common.config import Settings, get_settings
from telemetry_common.db import create_db_engine
from telemetry_common.logging_setup import configure_logging

from .core.redis import RedisConnection
from .dependencies import TelemetryServices
from .endpoints import cache_admin_router, devices_router, health_router
from .errors import DependencyError, TelemetryError
from .infrastructure.persistence import ensure_schema
from .schemas import ErrorOut

logger = logging.getLogger(__name__)

API_V1_PREFIX = "/api/v1"


def _error_response(status_code: int, error: str, details=None) -> JSONResponse:
    body = ErrorOut(error=error, details=details) if details is not None else ErrorOut(error=error)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(TelemetryError)
    async def telemetry_error_handler(request: Request, exc: TelemetryError):
        details = exc.details
        if isinstance(exc, DependencyError) and settings.is_production:
            details = None
        return _error_response(exc.status_code, exc.message, details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # Body/shape errors are reported as 400 like every other validation failure.
        details = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        ]
        return _error_response(400, "invalid request data", details)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "internal error")


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    redis_conn: Optional[RedisConnection] = None,
) -> FastAPI:
    """Builds the API.

    The engine and Redis connection are created once at startup and handed
    to every service. Passing both in (tests do) skips their construction
    and leaves their disposal to the caller.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned_engine: Optional[Engine] = None
        owned_redis: Optional[RedisConnection] = None

        if app.state.services is None:
            logger.info("Starting power telemetry API env=%s", settings.app_env)
            db_engine = engine
            if db_engine is None:
                db_engine = owned_engine = create_db_engine(settings)
                if settings.db_auto_create_schema:
                    ensure_schema(db_engine)
            cache_conn = redis_conn
            if cache_conn is None:
                cache_conn = owned_redis = RedisConnection(settings.redis_url)
                cache_conn.connect()
            app.state.services = TelemetryServices.build(
                db_engine,
                cache_conn,
                latest_ttl_seconds=settings.latest_cache_ttl_seconds,
            )

        yield

        if owned_redis is not None:
            owned_redis.close()
        if owned_engine is not None:
            owned_engine.dispose()
        logger.info("Power telemetry API stopped")

    app = FastAPI(
        title="Power Telemetry Service",
        description="Ingestion, history and latest-value lookups for device power readings.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = None
    if engine is not None and redis_conn is not None:
        app.state.services = TelemetryServices.build(
            engine,
            redis_conn,
            latest_ttl_seconds=settings.latest_cache_ttl_seconds,
        )

    _register_exception_handlers(app, settings)

    app.include_router(health_router)
    app.include_router(devices_router, prefix=API_V1_PREFIX)
    app.include_router(cache_admin_router, prefix=API_V1_PREFIX)
    app.mount("/metrics", make_asgi_app())

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.app_port)


if __name__ == "__main__":
    run()
