"""SQLModel persistence adapter."""

from .engine import create_db_engine, create_tables
from .unit_of_work import SqlModelUnitOfWork

__all__ = ["SqlModelUnitOfWork", "create_db_engine", "create_tables"]
