"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session, readonly_engine

router = APIRouter(tags=["health"])


async def _readonly_status() -> str:
    try:
        async with readonly_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "connected"
    except (SQLAlchemyError, OSError) as e:
        return f"error: {e}"


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Check API, primary and read-only database connectivity."""
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        db_status = "connected"
    except (SQLAlchemyError, OSError) as e:
        db_status = f"error: {e}"

    readonly_status = await _readonly_status()
    healthy = db_status == "connected" and readonly_status == "connected"

    return {
        "status": "ok" if healthy else "degraded",
        "database": db_status,
        "readonly_database": readonly_status,
        "service": "FIRE - Freedom Intelligent Routing Engine",
    }
