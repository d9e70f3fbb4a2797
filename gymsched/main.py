"""
FastAPI application for gym schedules

Templates, active schedules and timeslot booking. The weekly reset runs in
the celery beat worker (see gymsched.worker).
"""
import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager

from gymsched.config.settings import get_settings
from gymsched.core.exceptions import register_exception_handlers
from gymsched.core.middleware import correlation_id_middleware, request_logging_middleware
from gymsched.core.monitoring import health_router
from gymsched.api.v1.router import api_v1_router
from gymsched.utils.my_logging import setup_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging()
    logger.info(f"{settings.APP_NAME} starting up...")

    routes_list = []
    for route in app.routes:
        if isinstance(route, APIRoute):
            for method in route.methods:
                routes_list.append((method, route.path))
    for method, path in sorted(routes_list, key=lambda x: (x[1], x[0])):
        logger.debug(f"  {method:8} {path}")
    logger.info(f"Total routes registered: {len(routes_list)}")

    yield

    logger.info(f"{settings.APP_NAME} shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Recurring weekly gym schedules with capacity-limited timeslot booking",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Registered in reverse: correlation id is set before the logger reads it
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    register_exception_handlers(app)

    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1", tags=["api"])

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "schedules": "/api/v1/gym/schedules",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "gymsched.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
