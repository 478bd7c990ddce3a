# carebook/routers/health.py
from fastapi import APIRouter, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from carebook.core.logging import get_logger
from carebook.db.sql import ping_db

router = APIRouter()
logger = get_logger(__name__)

@router.get("/health")
async def health_root():
    return {"status": "ok"}

@router.get("/health/db")
async def health_db():
    """
    Validates PostgreSQL connectivity with SELECT 1.
    Returns 503 if no connectivity (useful for readiness/liveness checks).
    """
    try:
        await ping_db()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("database_unavailable", error=type(exc).__name__)
        # Don't expose internal details
        raise HTTPException(status_code=503, detail="database_unavailable") from exc
    return {"status": "ok", "database": "postgresql"}
