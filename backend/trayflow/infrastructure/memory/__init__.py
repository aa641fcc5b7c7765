"""In-memory persistence adapter."""

from .repositories import InMemoryState
from .unit_of_work import InMemoryUnitOfWork

__all__ = ["InMemoryState", "InMemoryUnitOfWork"]
