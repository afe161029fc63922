"""GET /health: liveness plus a database round-trip."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from magic_yarn.api.deps import get_db
from magic_yarn.core.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service and database health")
def health_check(db: Session = Depends(get_db)) -> dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Health check could not reach the database")
        database = "unavailable"

    settings = get_settings()
    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
    }
