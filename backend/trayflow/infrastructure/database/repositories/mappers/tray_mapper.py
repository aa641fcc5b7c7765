"""Mappers for trays, directory rows, placements and audit events."""

from trayflow.domain.trays.entities.audit_event import AuditEvent
from trayflow.domain.trays.entities.directory import (
    Department,
    Instrument,
    Pipeline,
    Stage,
    Technician,
)
from trayflow.domain.trays.entities.tray import Tray
from trayflow.domain.trays.value_objects.enums import SubjectType, TrayStatus
from trayflow.domain.trays.value_objects.routing import Placement
from trayflow.infrastructure.database.sqlmodel_entities import (
    DepartmentRow,
    EventRow,
    InstrumentRow,
    PipelineRow,
    PlacementRow,
    StageRow,
    TechnicianRow,
    TrayRow,
)


class TrayMapper:
    @staticmethod
    def domain_to_sql(tray: Tray) -> TrayRow:
        return TrayRow(
            id=tray.id,
            service_order_id=tray.service_order_id,
            number=tray.number,
            status=tray.status.value,
            parent_tray_id=tray.parent_tray_id,
            technician_id=tray.technician_id,
            attachment_count=tray.attachment_count,
            created_at=tray.created_at,
            updated_at=tray.updated_at,
        )

    @staticmethod
    def sql_to_domain(row: TrayRow) -> Tray:
        return Tray(
            id=row.id,
            service_order_id=row.service_order_id,
            number=row.number,
            status=TrayStatus(row.status),
            parent_tray_id=row.parent_tray_id,
            technician_id=row.technician_id,
            attachment_count=row.attachment_count,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )


class DirectoryMapper:
    @staticmethod
    def department(row: DepartmentRow) -> Department:
        return Department(id=row.id, name=row.name, pipeline_id=row.pipeline_id)

    @staticmethod
    def pipeline(row: PipelineRow) -> Pipeline:
        return Pipeline(id=row.id, name=row.name, department_id=row.department_id)

    @staticmethod
    def stage(row: StageRow) -> Stage:
        return Stage(id=row.id, pipeline_id=row.pipeline_id, name=row.name, position=row.position)

    @staticmethod
    def instrument(row: InstrumentRow) -> Instrument:
        return Instrument(
            id=row.id,
            name=row.name,
            department_id=row.department_id,
            pipeline_ref=row.pipeline,
        )

    @staticmethod
    def technician(row: TechnicianRow) -> Technician:
        return Technician(id=row.id, name=row.name, username=row.username)


class PlacementMapper:
    @staticmethod
    def sql_to_domain(row: PlacementRow) -> Placement:
        return Placement(tray_id=row.tray_id, pipeline_id=row.pipeline_id, stage_id=row.stage_id)


class EventMapper:
    @staticmethod
    def domain_to_sql(event: AuditEvent) -> EventRow:
        return EventRow(
            id=event.id,
            type=event.subject_type.value,
            item_id=event.subject_id,
            event_type=event.event_kind,
            message=event.message,
            payload=event.payload,
            actor=event.actor,
            created_at=event.created_at,
        )

    @staticmethod
    def sql_to_domain(row: EventRow) -> AuditEvent:
        return AuditEvent(
            id=row.id,
            subject_type=SubjectType(row.type),
            subject_id=row.item_id,
            event_kind=row.event_type,
            message=row.message,
            payload=row.payload or {},
            actor=row.actor,
            created_at=row.created_at,
        )
