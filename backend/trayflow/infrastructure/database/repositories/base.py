"""
Base class for SQLModel repositories.

Repositories share the unit of work's session and never commit: they flush
so later reads in the same transaction see the writes, and leave commit or
rollback to the unit of work. SQLAlchemy errors surface as
``PersistenceError``.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from trayflow.core.observability import get_logger
from trayflow.domain.shared.exceptions import PersistenceError

logger = get_logger(__name__)


class SqlRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _error(self, action: str, error: SQLAlchemyError) -> PersistenceError:
        logger.error("Database operation failed", action=action, error=str(error))
        return PersistenceError(f"Error {action}: {error}", {"action": action})

    def _flush(self, action: str) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as e:
            raise self._error(action, e) from e
