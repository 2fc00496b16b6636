"""FIRE — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.adapters.persistence.database import engine, readonly_engine
from app.config import settings
from app.infrastructure.api.routes_assignments import router as assignments_router
from app.infrastructure.api.routes_assistant import router as assistant_router
from app.infrastructure.api.routes_health import router as health_router
from app.infrastructure.api.routes_offices import router as offices_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()
    await readonly_engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="FIRE — Freedom Intelligent Routing Engine",
        description="Ticket assignment and guarded natural-language analytics",
        version="0.2.0",
        lifespan=lifespan,
    )

    # CORS for Next.js frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(assignments_router, prefix="/api")
    app.include_router(assistant_router, prefix="/api")
    app.include_router(offices_router, prefix="/api")

    return app


app = create_app()
