"""
Health check routes shared by the public and admin applications.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from ... import __version__
from ...database.connection import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/")
def health_check():
    """
    Health check endpoint.

    Returns basic API status and version information.
    """
    return {
        "message": "Trackera API is healthy",
        "version": __version__,
        "status": "operational"
    }


@router.get("/health")
def detailed_health_check(db: Session = Depends(get_db)):
    """
    Detailed health check endpoint.

    Returns health status including database connectivity.
    """
    try:
        db.execute(text("SELECT 1")).scalar()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )

    return {
        "status": "healthy",
        "version": __version__,
        "database": "connected",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
