"""
One transition, one commit.

``run_in_transaction`` wraps a unit of work that loads its aggregates, mutates
them and writes history/outbox rows. A concurrent writer bumping the same
``version`` surfaces as ``StaleDataError`` at flush; the unit is rolled back and
re-run from a fresh read. After the commit, pending outbox events are handed
to the dispatcher. Dispatch failures are logged and never reach the caller.
"""
from __future__ import annotations

from typing import Callable, TypeVar

from loguru import logger
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .config import settings
from .errors import ConcurrencyConflict
from .notifications import NotificationDispatcher

T = TypeVar("T")


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    dispatcher: NotificationDispatcher | None = None,
    label: str = "transition",
    max_retries: int | None = None,
) -> T:
    attempts = max_retries if max_retries is not None else settings.TRANSITION_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.warning(f"{label}: version conflict on attempt {attempt}/{attempts}, retrying")
            continue
        except Exception:
            db.rollback()
            raise
        break
    else:
        raise ConcurrencyConflict(f"{label} failed after {attempts} attempts due to concurrent updates")

    if dispatcher is not None:
        try:
            dispatcher.dispatch_pending()
        except Exception:
            # notifications are best-effort; the transition is already committed
            logger.exception(f"{label}: notification dispatch failed")
            db.rollback()
    return result
