# Overview: Retry and locking helpers shared by every service that writes.

from __future__ import annotations

import logging
import time

from flask import current_app, has_app_context
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a write still fails after all retry attempts."""


def lock_for_update(query):
    """
    Apply row-level locking for read-modify-write operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def _default_attempts() -> int:
    if has_app_context():
        return int(current_app.config.get("PERSIST_RETRY_ATTEMPTS", 3))
    return 3


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.1):
    """
    Execute a read-modify-write operation, retrying the whole operation on
    OperationalError (locks, unreachable DB) and StaleDataError (version_id
    conflicts). The session is rolled back before each retry so the next
    attempt re-reads current state.
    """
    attempts = attempts or _default_attempts()
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            logger.warning("Write attempt %s/%s failed: %s", attempt + 1, attempts, exc)
            if attempt >= attempts - 1:
                raise PersistenceError(str(exc)) from exc
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise PersistenceError(str(last_exc)) from last_exc

