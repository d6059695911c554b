"""
Health check endpoint
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.config import settings
from order_service.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint

    Checks:
    - Service status
    - Database connectivity
    - Whether the payment gateway and document service are configured
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        logger.error("Health check database failure: %s", e)
        db_status = f"unhealthy: {str(e)}"

    return {
        "service": settings.SERVICE_NAME,
        "status": "healthy" if db_status == "healthy" else "unhealthy",
        "database": db_status,
        "payment_gateway": "configured" if settings.PAYSTACK_SECRET_KEY else "not configured",
        "document_service": "configured" if settings.DOCUMENT_SERVICE_URL else "not configured",
        "email": settings.EMAIL_SERVICE,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/")
def root():
    """Root endpoint"""
    return {
        "service": settings.SERVICE_NAME,
        "version": "1.0.0",
        "docs": "/docs"
    }
