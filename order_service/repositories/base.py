"""
Shared helpers for repositories
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from order_service.errors import StorageError

logger = logging.getLogger(__name__)


class BaseRepository:
    """Commit/rollback handling shared by all repositories"""

    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        """Commit the unit of work, converting driver errors to StorageError"""
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Database commit failed: %s", e)
            raise StorageError(f"Database write failed: {e}")

    def save(self, instance):
        """Add, commit and refresh a single row"""
        self.db.add(instance)
        self.commit()
        self.db.refresh(instance)
        return instance
