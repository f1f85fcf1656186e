"""
This is the canonical Unit of Work boundary for the rundown engine. All transactional
changes must go through this.

Do not open ad hoc sessions elsewhere.

Engine and usecase functions only flush; the commit happens here, once, so a
reorder batch or a recalculation pass either lands completely or not at all.
"""

from __future__ import annotations

import contextlib
from collections.abc import Generator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import db as db_module
from .exceptions import PersistenceError


@contextlib.contextmanager
def session(for_test: bool = False) -> Generator[Session, None, None]:
    """
    Database session context manager for CLI operations and batch jobs.

    Provides Unit of Work semantics:
    - Opens a DB session (the test database when ``for_test`` is set)
    - Yields it for use
    - On success: commits the transaction
    - On exception: rolls back and re-raises the exception
    - Always closes the session

    Store errors are re-raised as PersistenceError with the driver exception
    chained, never exposed directly.

    Usage:
        with session() as db:
            lock_bulletin(db, bulletin_id=..., actor=...)
    """
    db = db_module.get_sessionmaker(for_test=for_test)()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("Transaction aborted by the store") from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
