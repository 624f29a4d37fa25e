# app/services/transaction.py
from contextlib import contextmanager
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.utils.errors import AppError, Conflict, InternalError

logger = logging.getLogger(__name__)

@contextmanager
def transaction(db: Session, failure_message: str = "Failed to save changes", conflict_message: Optional[str] = None):
    """
    Run a unit of work and commit it, or roll everything back

    Args:
        db: Request-scoped session
        failure_message: Message of the InternalError raised on store failures
        conflict_message: When set, constraint violations become a Conflict

    Raises:
        AppError: policy errors raised inside the block, after rollback
        Conflict: a unique or primary key constraint was violated
        InternalError: any other store failure, without storage detail
    """
    try:
        yield db
        db.commit()
    except AppError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        if conflict_message:
            logger.info(f"Constraint violation: {conflict_message}")
            raise Conflict(conflict_message) from e
        logger.exception(failure_message)
        raise InternalError(failure_message) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(failure_message)
        raise InternalError(failure_message) from e
