import logging
from typing import TypeVar

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class BaseRepository:
    """Shared write helpers. Each write commits; failures roll back and re-raise."""

    def __init__(self, db: Session):
        """
        Initialize the repository with database session.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def add(self, instance: ModelT) -> ModelT:
        try:
            self.db.add(instance)
            self.db.commit()
            self.db.refresh(instance)
            return instance
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Error creating {type(instance).__name__}",
                extra={"context": {"error": str(e)}},
                exc_info=True,
            )
            raise

    def save(self, instance: ModelT) -> ModelT:
        try:
            self.db.commit()
            self.db.refresh(instance)
            return instance
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Error updating {type(instance).__name__}",
                extra={"context": {"error": str(e)}},
                exc_info=True,
            )
            raise

    def delete(self, instance) -> None:
        try:
            self.db.delete(instance)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Error deleting {type(instance).__name__}",
                extra={"context": {"error": str(e)}},
                exc_info=True,
            )
            raise
