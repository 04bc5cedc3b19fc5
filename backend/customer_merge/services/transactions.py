"""Commit/rollback handling for multi-statement merge operations."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from customer_merge.services.errors import MergeServiceError, StorageFailure

logger = logging.getLogger(__name__)


@contextmanager
def storage_transaction(db: Session, operation: str, **context: Any) -> Iterator[None]:
    """Commit on success; roll back everything on any error.

    Backing-store errors are re-raised as ``StorageFailure`` so callers can
    retry the whole operation from scratch.
    """

    try:
        yield
        db.commit()
    except MergeServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "customer_merge.storage_failure operation=%s context=%s",
            operation,
            context,
        )
        raise StorageFailure(
            f"{operation} failed in the backing store; no changes were saved.",
            operation=operation,
            **context,
        ) from exc
    except Exception:
        db.rollback()
        raise
