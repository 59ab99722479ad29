from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from core.exceptions import AppError, PersistenceError
from utils.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def transaction(db: Session, failure_message: str, **log_context):
    """
    Commit the block as one unit or roll all of it back.

    Business errors propagate unchanged. Database errors are logged with their
    stack trace and surface as ``PersistenceError`` so callers never mistake an
    outage for a business rule.
    """
    try:
        yield
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(
            f"{failure_message}: {exc}",
            extra={**log_context, "error_type": type(exc).__name__},
            exc_info=True
        )
        raise PersistenceError(failure_message) from exc
