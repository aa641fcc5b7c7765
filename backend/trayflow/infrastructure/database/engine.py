"""Engine creation and schema setup."""

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from trayflow.core.config import get_settings

# Importing the module registers every table on SQLModel.metadata.
from . import sqlmodel_entities  # noqa: F401


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Create an engine for ``database_url`` (default: configured URL).

    In-memory SQLite gets a single shared connection so every session sees
    the same database.
    """
    settings = get_settings()
    url = database_url or settings.DATABASE_URL
    kwargs: dict = {"echo": settings.LOG_SQL}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def create_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
