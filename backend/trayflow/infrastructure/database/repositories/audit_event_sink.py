"""Audit event sink implementation using SQLModel."""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from trayflow.domain.trays.entities.audit_event import AuditEvent
from trayflow.domain.trays.repositories.audit_event_sink import AuditEventSink
from trayflow.infrastructure.database.sqlmodel_entities import EventRow

from .base import SqlRepository
from .mappers.tray_mapper import EventMapper


class SqlAuditEventSink(SqlRepository, AuditEventSink):
    async def append(self, event: AuditEvent) -> AuditEvent:
        action = f"appending {event.event_kind} event"
        try:
            self.session.add(EventMapper.domain_to_sql(event))
        except SQLAlchemyError as e:
            raise self._error(action, e) from e
        self._flush(action)
        return event

    async def exists(self, subject_id: UUID, event_kind: str) -> bool:
        try:
            statement = select(EventRow.id).where(
                EventRow.item_id == subject_id, EventRow.event_type == event_kind
            )
            return self.session.exec(statement).first() is not None
        except SQLAlchemyError as e:
            raise self._error(f"checking {event_kind} events", e) from e

    async def get_by_subject(self, subject_id: UUID) -> list[AuditEvent]:
        try:
            statement = (
                select(EventRow)
                .where(EventRow.item_id == subject_id)
                .order_by(EventRow.created_at)
            )
            return [EventMapper.sql_to_domain(r) for r in self.session.exec(statement).all()]
        except SQLAlchemyError as e:
            raise self._error(f"loading events of {subject_id}", e) from e
