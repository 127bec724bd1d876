"""
seo-info HTTP API - application entry point.
FastAPI application with lifespan management.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from seo_info.api.v1.routes import analysis, health
from seo_info.core.config import get_settings
from seo_info.core.logging import configure_logging

logger = structlog.get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Configure logging on startup; nothing to tear down."""
    configure_logging(verbose=settings.DEBUG)
    logger.info("Starting seo-info API", version=settings.APP_VERSION, env=settings.ENV)
    yield
    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    app = FastAPI(
        title="seo-info API",
        description="Single-page SEO analysis.",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.ENV != "production" else None,
        redoc_url="/redoc" if settings.ENV != "production" else None,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Routers
    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(analysis.router, prefix="/api/v1/analysis", tags=["Analysis"])

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "request_id": request.headers.get("x-request-id")},
        )

    return app


app = create_application()


def run() -> None:
    import uvicorn

    uvicorn.run("seo_info.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
