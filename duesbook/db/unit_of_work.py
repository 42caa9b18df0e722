"""Commit-or-rollback wrapper used by every service that writes."""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import DataError, DBAPIError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from duesbook.core.exceptions import BackendUnavailable, ConflictError, ValidationError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session):
    """Run the block as one database transaction.

    Commits on success. On any error the session is rolled back, so a
    transaction row is never persisted without its dues adjustment.
    Stale version counters surface as ConflictError. Values a column cannot
    hold become ValidationError; driver-level failures become BackendUnavailable.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.info(f"Concurrent modification detected: {e}")
        raise ConflictError(
            "The record was changed by another session. Reload and try again."
        ) from e
    except DataError as e:
        db.rollback()
        logger.warning(f"Value rejected by the database: {e.orig}")
        raise ValidationError("Value is out of range for this field") from e
    except (OperationalError, DBAPIError) as e:
        db.rollback()
        if isinstance(e, OperationalError) or e.connection_invalidated:
            raise BackendUnavailable(e) from e
        raise
    except Exception:
        db.rollback()
        logger.debug("Transaction rolled back")
        raise
