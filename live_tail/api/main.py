"""FastAPI application receiving trace log batches."""

from __future__ import annotations

from fastapi import FastAPI

from live_tail.api.context import AppContext
from live_tail.api.middleware import AuditLoggerMiddleware
from live_tail.api.routers import logs as log_router
from live_tail.api.schemas import APIMessage
from live_tail.version import __version__


def create_app(context: AppContext | None = None) -> FastAPI:
    """Instantiate the FastAPI application with all routers."""

    app = FastAPI(
        title="live-tail log server",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.state.context = context or AppContext()
    app.add_middleware(AuditLoggerMiddleware)

    app.include_router(log_router.router)

    @app.get("/healthz", response_model=APIMessage, tags=["system"])
    def healthz() -> APIMessage:
        return APIMessage(message="ok")

    return app


__all__ = ["create_app"]
