# Overview: Row locking and retry helpers for transactional service operations.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking (SELECT ... FOR UPDATE).

    NOTE: SQLite ignores FOR UPDATE; it serializes writers at the database
    level instead. MySQL/Postgres honor it.
    """
    return query.with_for_update()


def lock_rows_in_order(model, ids):
    """
    Lock the given rows ordered by primary key and return them keyed by id.

    Locking in a fixed order keeps two approvals touching the same products
    from deadlocking each other.
    """
    if not ids:
        return {}
    rows = lock_for_update(
        db.session.query(model).filter(model.id.in_(sorted(set(ids)))).order_by(model.id)
    ).all()
    return {row.id: row for row in rows}


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation, retrying on lock/deadlock failures.

    Domain errors raised by func propagate immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after concurrency failure (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))


def commit_session():
    """
    Commit the current session once.

    A failed commit is rolled back and re-raised. It is never retried: the
    rollback has already discarded the pending changes.
    """
    try:
        db.session.commit()
    except (OperationalError, StaleDataError):
        db.session.rollback()
        logger.warning("Commit failed; changes rolled back")
        raise
