import logging
from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError

from accountant import db
from accountant.exceptions import LedgerError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(action: str):
    """
    Run the enclosed writes as one unit: commit on success, roll back on any
    failure. Database errors are re-raised as StorageError.
    """
    try:
        yield
        db.session.commit()
    except LedgerError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error %s: %s", action, e, exc_info=True)
        raise StorageError(f"Error {action}") from e
