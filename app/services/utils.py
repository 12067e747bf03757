"""Shared utilities for service layer."""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import PersistenceError
from app.core.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def atomic(db: Session, action: str = "mutation") -> Iterator[Session]:
    """
    Run a block as one database transaction.

    Commits when the block finishes. Any exception rolls back; database
    errors are re-raised as ``PersistenceError`` so the caller can stop
    before broadcasting anything.

    Args:
        db: SQLAlchemy session
        action: Short label for the log line on failure

    Example:
        with atomic(db, "submit_question"):
            question = questions.create_question(db, ...)
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("persistence_failed", action=action, error=str(e))
        raise PersistenceError(f"Could not save {action.replace('_', ' ')}") from e
    except Exception:
        db.rollback()
        raise
