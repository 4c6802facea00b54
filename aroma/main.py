from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import admin, api
from .config import Settings, get_settings, setup_logging
from .errors import (
    ExternalServiceError,
    InvalidTransition,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .seed import ensure_seed_data
from .store import Store, open_store

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
    ExternalServiceError: status.HTTP_400_BAD_REQUEST,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.store is None:
            app.state.store = open_store(settings)
        app.state.store.init()
        if settings.seed_on_startup:
            ensure_seed_data(app.state.store)
        logger.info("Startup complete (%s backend)", settings.storage_backend)

        yield

        app.state.store.close()
        logger.info("Shutting down")

    app = FastAPI(title="AROMA Orders", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def no_cache(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response

    for error_class, status_code in ERROR_STATUS.items():
        app.add_exception_handler(error_class, _error_handler(status_code))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": jsonable_encoder(exc.errors())})

    app.include_router(api.router, prefix="/api", tags=["public"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])

    @app.get("/")
    def index() -> dict:
        return {
            "message": "Restaurant Backend API is running!",
            "endpoints": {
                "health": "/api/health",
                "menu": "/api/menu",
                "settings": "/api/settings",
                "admin": "/admin",
            },
        }

    return app


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def run() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
