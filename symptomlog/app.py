# symptomlog/app.py
"""Application factory.

    uvicorn --factory symptomlog.app:create_app
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from symptomlog.context import ServiceContext, build_context
from symptomlog.middleware.tracing import TracingMiddleware
from symptomlog.routes import history_routes, symptoms_routes
from symptomlog.settings import Settings
from symptomlog.utils.exceptions import (
    SymptomLogError,
    handle_http_exception,
    handle_request_validation,
    handle_symptomlog_error,
)
from symptomlog.utils.logs import configure_logging


def create_app(context: Optional[ServiceContext] = None, settings: Optional[Settings] = None) -> FastAPI:
    if context is None:
        context = build_context(settings or Settings.from_env())
    settings = context.settings
    logger = configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info({"function": "startup", "storage_backend": settings.storage_backend})
        yield
        context.close()

    app = FastAPI(title="SymptomLog", version="0.1.0", lifespan=lifespan)
    app.state.context = context

    app.add_exception_handler(SymptomLogError, handle_symptomlog_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)

    app.add_middleware(TracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(symptoms_routes.router)
    app.include_router(history_routes.router)

    @app.get("/health", tags=["meta"])
    def health():
        return {"status": "ok"}

    return app
