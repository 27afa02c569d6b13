"""
Entry point for the access controller management backend.

This module creates the FastAPI application, opens the four stores,
includes the API routers and installs the handlers that turn every
outcome into the response envelope. Run with:

    uvicorn acs_backend.main:app

"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import api_router
from .core.config import Settings, get_app_env, get_settings, validate_runtime_settings
from .core.db import SessionContext, create_all_tables, create_stores
from .core.errors import AppError, AuthError, correlation_id, log_exception
from .core.logging_config import setup_logging
from .core.responses import error_response
from .services.device_relay import DeviceRelay
from .services.seed import seed_controller, seed_controller_users


def _validation_message(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in {"body", "query", "path"})
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "invalid request"


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        if isinstance(exc, AuthError):
            logging.getLogger("auth").info(
                "Unauthorized %s %s reason=%s", request.method, request.url.path, exc.reason.value
            )
        return error_response(exc.code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        return error_response(400, _validation_message(exc))

    @app.middleware("http")
    async def _recover(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            cid = correlation_id()
            log_exception(
                logging.getLogger("recovery"),
                "Unhandled error",
                extra={"method": request.method, "path": request.url.path, "correlation_id": cid},
                exc=exc,
            )
            return error_response(500, str(exc) or exc.__class__.__name__, data=cid)


def _init_db(app: FastAPI, settings: Settings) -> None:
    logger = logging.getLogger("startup")
    env = get_app_env()
    stores = app.state.stores
    if settings.auto_create_db:
        try:
            create_all_tables(stores)
        except Exception as exc:
            log_exception(logger, "DB create_all failed", exc=exc)
            if env == "prod":
                raise
    if settings.auto_seed:
        try:
            with SessionContext(stores.ConfigSession) as db:
                seed_controller_users(db, settings)
                seed_controller(db)
        except Exception as exc:
            log_exception(logger, "Seed controller failed", exc=exc)
            if env == "prod":
                raise


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)
    validate_runtime_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _init_db(app, settings)
        yield
        app.state.stores.dispose()

    app = FastAPI(title="Access Controller Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.stores = create_stores(settings)
    app.state.device_relay = DeviceRelay.from_settings(settings)
    _install_error_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
