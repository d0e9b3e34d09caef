"""Transaction boundary for core operations.

Commits on success. Any failure rolls the session back so no partial state
becomes visible; storage errors are logged and surfaced as a retryable
StorageFailure instead of the driver's exception.
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hostellink.core.errors import ServiceError, StorageFailure

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session, action: str):
    try:
        yield db
        db.commit()
    except ServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("storage failure during %s", action)
        raise StorageFailure() from e
    except Exception:
        db.rollback()
        raise
