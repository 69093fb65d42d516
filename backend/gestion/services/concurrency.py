# Overview: Locking, retry and unit-of-work helpers used by every state-changing service.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import InvalidStateError, StorageUnavailableError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func as one unit of work: commit on success, roll back on any error.

    func must (re)load the rows it touches so a retry starts from fresh state.
    Exhausted retries surface as StorageUnavailableError (lock/connection
    trouble) or InvalidStateError (lost an optimistic-lock race).
    """
    def _op():
        try:
            result = func()
            db.session.commit()
            return result
        except Exception:
            db.session.rollback()
            raise

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except OperationalError as exc:
        raise StorageUnavailableError(
            "Storage unavailable, operation not applied",
            details={"error": str(exc.orig) if exc.orig is not None else str(exc)},
        ) from exc
    except StaleDataError as exc:
        raise InvalidStateError(
            "Record was modified concurrently, reload and retry",
            details={"error": str(exc)},
        ) from exc
