"""
Liveness and readiness probes
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adtier.core.config import settings
from adtier.core.deps import get_db

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request):
    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "scheduler": "running" if scheduler is not None and scheduler.running else "stopped",
    }


@router.get("/health/db")
def database_health(db: Session = Depends(get_db)):
    """Round-trip a trivial query through the session"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}
    return {"status": "healthy", "database": "connected", "dialect": db.get_bind().dialect.name}
