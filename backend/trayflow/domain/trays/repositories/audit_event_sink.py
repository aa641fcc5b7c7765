"""Audit Event Sink Interface: append-only event log."""

from abc import ABC, abstractmethod
from uuid import UUID

from ..entities.audit_event import AuditEvent


class AuditEventSink(ABC):
    """Append-only store of audit events."""

    @abstractmethod
    async def append(self, event: AuditEvent) -> AuditEvent:
        """
        Append an event.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    async def exists(self, subject_id: UUID, event_kind: str) -> bool:
        """Whether an event of ``event_kind`` was already logged for ``subject_id``."""
        pass

    @abstractmethod
    async def get_by_subject(self, subject_id: UUID) -> list[AuditEvent]:
        """Events logged for a subject, oldest first."""
        pass
