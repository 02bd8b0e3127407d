# Overview: Transaction boundary for the SQL backend; row locks, commit/rollback and retry.

"""
One SQL unit of work is one transaction.

run_unit_with_retry() is the only place that commits. A unit commits when
it returns normally, rolls back when it raises or when `failed` flags its
return value (a failed Result), and is re-run from scratch after a
transient lock or deadlock error.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

T = TypeVar("T")

# Deadlocks, "database is locked", optimistic version conflicts
TRANSIENT_ERRORS = (OperationalError, StaleDataError)

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """SELECT ... FOR UPDATE. SQLite ignores it; decrement_stock's conditional UPDATE still holds there."""
    return query.with_for_update()


def _never_failed(result: Any) -> bool:
    return False


def _commit_or_rollback(func: Callable[[], T], failed: Callable[[Any], bool]) -> T:
    try:
        result = func()
        if failed(result):
            db.session.rollback()
        else:
            db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return result


def run_unit_with_retry(
    func: Callable[[], T],
    *,
    failed: Callable[[Any], bool] = _never_failed,
    attempts: int = 3,
    backoff_base: float = 0.1,
) -> T:
    """
    Run `func` as one transaction, retrying transient database errors.

    `func` must be safe to re-run: a retried attempt starts from a
    rolled-back session. The last transient error is re-raised.
    """
    for attempt in range(1, attempts + 1):
        try:
            return _commit_or_rollback(func, failed)
        except TRANSIENT_ERRORS as exc:
            if attempt == attempts:
                raise
            logger.warning(
                "Transient database error (%s), retrying unit %s/%s",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
