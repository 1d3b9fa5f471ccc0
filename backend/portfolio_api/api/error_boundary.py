import logging
from contextlib import contextmanager
from typing import Optional
from sqlalchemy.orm import Session
from portfolio_api.core.errors import AppError, UnexpectedError

logger = logging.getLogger(__name__)


@contextmanager
def handler_boundary(message: str, db: Optional[Session] = None):
    """
    Convert anything that escapes a route handler into the error taxonomy.

    AppError subclasses pass through untouched. Everything else (database
    errors, network errors, bugs) is logged with its traceback, the session
    is rolled back, and an UnexpectedError carrying the route's short
    message is raised instead.
    """
    try:
        yield
    except AppError:
        raise
    except Exception as e:
        if db is not None:
            db.rollback()
        logger.exception(f"{message}: {str(e)}")
        raise UnexpectedError(message) from e
