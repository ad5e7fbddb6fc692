from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from schedease.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def commit_or_raise(db: Session, *, context: str) -> None:
    """Commit, mapping storage failures to a retryable PersistenceError after rolling back."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Storage constraint rejected %s: %s", context, exc.orig)
        raise PersistenceError(
            f"Storage constraint rejected {context}; reload and retry",
            details={"reason": "constraint_violation"},
        ) from exc
    except OperationalError as exc:
        db.rollback()
        logger.exception("Store unavailable during %s", context)
        raise PersistenceError(f"Store unavailable during {context}", details={"reason": "unavailable"}) from exc
