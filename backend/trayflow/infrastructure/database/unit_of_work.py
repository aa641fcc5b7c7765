"""
Unit of Work implementation for managing transactions across repositories.

All repositories of a unit of work share one session. ``transaction()``
commits when its outermost block exits normally and rolls back when it
raises; nested blocks join the outer transaction.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from trayflow.core.observability import get_logger
from trayflow.domain.shared.exceptions import PersistenceError
from trayflow.domain.trays.repositories.unit_of_work import TrayUnitOfWork

from .engine import create_db_engine
from .repositories import (
    SqlAuditEventSink,
    SqlDirectoryRepository,
    SqlLineItemRepository,
    SqlPlacementRepository,
    SqlTrayRepository,
)

logger = get_logger(__name__)


class SqlModelUnitOfWork(TrayUnitOfWork):
    """
    SQLModel-based implementation of Unit of Work pattern.

    Manages database transactions using a SQLModel session and provides
    access to all repositories within a single transactional boundary.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        """
        Initialize the unit of work.

        Args:
            engine: Optional engine. If None, creates one from settings.
        """
        self._engine = engine or create_db_engine()
        self._session = Session(self._engine, expire_on_commit=False)
        self._depth = 0

        self.trays = SqlTrayRepository(self._session)
        self.items = SqlLineItemRepository(self._session)
        self.directory = SqlDirectoryRepository(self._session)
        self.placements = SqlPlacementRepository(self._session)
        self.audit = SqlAuditEventSink(self._session)

    @property
    def session(self) -> Session:
        return self._session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlModelUnitOfWork"]:
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()
        finally:
            self._depth = 0

    def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            PersistenceError: If commit fails
        """
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self.rollback()
            raise PersistenceError(f"Failed to commit transaction: {e}") from e

    def rollback(self) -> None:
        """
        Rollback the current transaction.

        Raises:
            PersistenceError: If rollback fails
        """
        try:
            self._session.rollback()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to rollback transaction: {e}") from e
        logger.debug("Rolled back database transaction")

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "SqlModelUnitOfWork":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
