import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.errors import ConcurrentUpdateError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# postgres deadlock_detected, serialization_failure
RETRYABLE_PGCODES = ("40P01", "40001")


def run_atomic(db: Session, unit: Callable[[], T], retries: int | None = None) -> T:
    """Run ``unit`` and commit it as a single transaction.

    ``unit`` must do all of its reads itself: on a version conflict
    (``StaleDataError``), a lost insert race (``IntegrityError``) or a database
    deadlock or serialization failure, the session is rolled back and ``unit``
    is called again, up to ``retries`` extra times.
    Domain errors roll back and propagate unchanged.
    """
    if retries is None:
        retries = settings.LEDGER_MAX_RETRIES
    attempt = 0
    while True:
        try:
            result = unit()
            db.commit()
            return result
        except (StaleDataError, IntegrityError, OperationalError) as e:
            db.rollback()
            if isinstance(e, OperationalError) and getattr(e.orig, "pgcode", None) not in RETRYABLE_PGCODES:
                raise
            if attempt >= retries:
                logger.warning("giving up after %d retries: %s", attempt, e.__class__.__name__)
                raise ConcurrentUpdateError() from e
            attempt += 1
            logger.info("concurrent update detected (%s), retry %d/%d", e.__class__.__name__, attempt, retries)
        except Exception:
            db.rollback()
            raise
