"""Transaction boundary and storage-error translation."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from skillspark.exceptions import Conflict, InvalidArgument, NotFound, StorageUnavailable, StoreError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"


def _sqlstate(exc: DBAPIError):
    orig = exc.orig
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate(exc: SQLAlchemyError) -> StoreError:
    """Map a SQLAlchemy exception onto the store's error taxonomy."""
    if isinstance(exc, IntegrityError):
        code = _sqlstate(exc)
        message = str(exc.orig)
        if code == UNIQUE_VIOLATION or "UNIQUE constraint failed" in message:
            return Conflict(message)
        if code == FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in message:
            return NotFound(message)
        if code in (CHECK_VIOLATION, NOT_NULL_VIOLATION) or "constraint failed" in message:
            return InvalidArgument(message)
        return Conflict(message)
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)):
        return StorageUnavailable(str(exc))
    return StoreError(str(exc))


@contextmanager
def storage_errors(db: Session):
    """Roll back and re-raise SQLAlchemy errors as store errors."""
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        error = translate(exc)
        if isinstance(error, StorageUnavailable):
            logger.error("Storage unavailable: %s", exc)
        else:
            logger.warning("Write rejected by storage: %s", error)
        raise error from exc


@contextmanager
def atomic(db: Session):
    """Run the block as one unit of work: commit on success, roll back otherwise."""
    with storage_errors(db):
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        db.commit()
