# Overview: Transaction helpers shared by the write paths (row locks, retries, all-or-nothing blocks).

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Row lock for read-modify-write sequences (QR assignment, box moves).

    NOTE: SQLite ignores SELECT ... FOR UPDATE; PostgreSQL honors it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a unit of work, retrying on lock timeouts and stale rows.

    The session is rolled back before every retry so func always starts
    from a clean transaction. Domain errors are never retried.
    """
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


@contextmanager
def atomic():
    """
    Commit everything done inside the block, or nothing.

        with atomic():
            location.is_deleted = True
            ...
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
