"""Request-wide unit of work around a single database session."""

import logging
from typing import Generator

from cardvault.db import get_db as get_original_db  # fix for test mocks
from fastapi import Depends
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Commits when the block succeeds and rolls back when it raises.

    Services that must persist state before raising an error (attempt
    counters, challenges whose delivery failed) commit explicitly and
    are not affected by the final rollback.
    """

    def __init__(self, db: Session):
        self.db = db

    def __getattr__(self, attr):
        # behave like the wrapped session everywhere a Session is expected
        return getattr(self.db, attr)

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is None:
                self.db.commit()
            else:
                logger.debug("UnitOfWork: rolling back after %s", exc_type.__name__)
                self.db.rollback()
        finally:
            self.db.close()


def get_uow(
    db: Session = Depends(get_original_db),
) -> Generator[UnitOfWork, None, None]:
    """One unit of work per request, shared by every service of that request."""
    with UnitOfWork(db) as uow:
        yield uow
