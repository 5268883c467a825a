import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request

from app.api.routes.health import router as health_router
from app.api.routes.internal_gamification import router as internal_gamification_router
from app.api.routes.internal_loyalty import router as internal_loyalty_router
from app.api.routes.internal_sessions import router as internal_sessions_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import dispose_engine

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    await dispose_engine()


async def bind_request_context(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    docs_enabled = settings.enable_openapi_docs
    app = FastAPI(
        title="Merchant Games Core API",
        version="0.1.0",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.middleware("http")(bind_request_context)
    for router in (
        health_router,
        internal_sessions_router,
        internal_gamification_router,
        internal_loyalty_router,
    ):
        app.include_router(router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
