"""Liveness and readiness probes."""

import logging
import time
from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from ...config import settings
from ..deps import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def _ping_database(db: Session) -> Dict[str, object]:
    started = time.time()
    db.execute(text("SELECT 1"))
    return {"status": "ok", "latencyMs": round((time.time() - started) * 1000, 2)}


@router.get("/health")
async def health_check():
    """Liveness probe; never touches dependencies."""
    return {
        "status": "healthy",
        "service": "educademy-report-service",
        "environment": settings.environment,
    }


@router.get("/health/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness probe.

    Report generation cannot work without the platform database, so a
    failed ping answers 503.

    Args:
        db: Database session

    Returns:
        dict: Overall status with per-dependency checks
    """
    try:
        database = _ping_database(db)
    except Exception as e:
        logger.error(f"Readiness check failed: database unreachable: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "checks": {"database": {"status": "error", "error": str(e)}}},
        )

    return {"status": "ready", "checks": {"database": database}}
