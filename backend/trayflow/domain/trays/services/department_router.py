"""
Department Router

Enforces the single-department rule for trays and resolves the pipeline and
stage a tray enters, and runs the batch dispatch that sends every numbered
tray of a service order to its department queue.
"""

from uuid import UUID

from trayflow.core.config import Settings, get_settings
from trayflow.core.observability import bind_operation, get_logger

from ...shared.base import DomainService
from ...shared.exceptions import (
    DepartmentMappingNotFoundError,
    DomainError,
    EmptyTrayError,
    MixedDepartmentError,
    NoDepartmentResolvableError,
    TrayNotRoutableError,
)
from ..entities.directory import Department, Instrument, Pipeline, Stage
from ..entities.line_item import LineItem
from ..entities.tray import Tray
from ..events.domain_events import DomainEventDispatcher, TrayRouted
from ..repositories.unit_of_work import TrayUnitOfWork
from ..value_objects.enums import EventKind, SubjectType
from ..value_objects.routing import (
    DispatchFailure,
    DispatchReport,
    Placement,
    RouteDestination,
    RoutedTray,
)
from .directory_cache import DirectoryCache
from .reconciliation_log import ReconciliationLog

logger = get_logger(__name__)


class DepartmentRouter(DomainService):
    """
    Service for routing trays to department pipelines.

    A tray may only be routed when every instrument on it resolves to the
    same department. Placeholder and sales trays are never routed.
    """

    def __init__(
        self,
        unit_of_work: TrayUnitOfWork,
        audit_log: ReconciliationLog,
        dispatcher: DomainEventDispatcher | None = None,
        config: Settings | None = None,
    ) -> None:
        """
        Initialize the department router.

        Args:
            unit_of_work: Repositories and transactional boundary
            audit_log: Writer for first-occurrence routing events
            dispatcher: Receives ``TrayRouted`` events (notifications)
            config: Settings override, defaults to the process settings
        """
        self._uow = unit_of_work
        self._audit = audit_log
        self._dispatcher = dispatcher or DomainEventDispatcher()
        self._config = config or get_settings()
        self._dispatch_in_flight = False

    @property
    def dispatch_in_flight(self) -> bool:
        return self._dispatch_in_flight

    async def resolve_destination(
        self,
        tray: Tray,
        items: list[LineItem] | None = None,
        allow_empty: bool = False,
        directory: DirectoryCache | None = None,
    ) -> RouteDestination:
        """
        Resolve the department, pipeline and stage for a tray.

        Args:
            tray: Tray to route
            items: Tray items; read from storage when omitted
            allow_empty: Route an empty tray through the fallback department
            directory: Directory cache shared with the caller

        Returns:
            Resolved destination

        Raises:
            TrayNotRoutableError: If the tray is a placeholder or a sales tray
            EmptyTrayError: If the tray has no items and ``allow_empty`` is False
            MixedDepartmentError: If items resolve to more than one department
            NoDepartmentResolvableError: If nothing resolves and no fallback exists
            DepartmentMappingNotFoundError: If a directory reference is dangling
        """
        if tray.is_placeholder:
            raise TrayNotRoutableError(tray.id, "placeholder tray has no number")
        if tray.is_sales(self._config.SALES_TRAY_PREFIXES):
            raise TrayNotRoutableError(tray.id, f"sales tray {tray.number}")

        directory = directory or DirectoryCache(self._uow.directory)
        if items is None:
            items = await self._uow.items.get_by_tray(tray.id)
        if not items and not allow_empty:
            raise EmptyTrayError(tray.id)

        found = await self.resolve_departments(items, directory)
        is_fallback = False
        if not found:
            department = await self._fallback_department(tray, directory)
            is_fallback = True
        elif len(found) > 1:
            departments = list(found.values())
            names = [department.name for department, _ in departments]
            raise MixedDepartmentError(
                tray.id,
                names,
                {department.name: labels for department, labels in departments},
            )
        else:
            department, _ = next(iter(found.values()))

        pipeline = await self._department_pipeline(department, directory)
        stage, is_return = await self._entry_stage(tray, pipeline, directory)
        return RouteDestination(
            department_id=department.id,
            department_name=department.name,
            pipeline_id=pipeline.id,
            pipeline_name=pipeline.name,
            stage_id=stage.id,
            stage_name=stage.name,
            is_return=is_return,
            is_fallback=is_fallback,
        )

    async def resolve_departments(
        self, items: list[LineItem], directory: DirectoryCache
    ) -> dict[UUID, tuple[Department, list[str]]]:
        """Distinct departments of instrument-bearing items, with the instruments behind each."""
        instrument_ids = [item.instrument_id for item in items if item.instrument_id]
        instruments = await directory.instruments(instrument_ids)

        found: dict[UUID, tuple[Department, list[str]]] = {}
        for item in items:
            if item.instrument_id is None:
                continue
            instrument = instruments.get(item.instrument_id)
            if instrument is None:
                raise DepartmentMappingNotFoundError(f"instrument {item.instrument_id}", item.id)
            department = await self._instrument_department(instrument, item, directory)
            if department is None:
                continue
            _, labels = found.setdefault(department.id, (department, []))
            if instrument.name not in labels:
                labels.append(instrument.name)
        return found

    async def _instrument_department(
        self, instrument: Instrument, item: LineItem, directory: DirectoryCache
    ) -> Department | None:
        if instrument.department_id is not None:
            department = await directory.department(instrument.department_id)
            if department is None:
                raise DepartmentMappingNotFoundError(str(instrument.department_id), item.id)
            return department

        if instrument.pipeline_ref:
            pipeline = await directory.pipeline_by_reference(instrument.pipeline_ref)
            if pipeline is None:
                raise DepartmentMappingNotFoundError(instrument.pipeline_ref, item.id)
            department = await self._pipeline_department(pipeline, directory)
            if department is None:
                raise DepartmentMappingNotFoundError(pipeline.name, item.id)
            return department

        if item.department_id is not None:
            return await directory.department(item.department_id)
        return None

    async def _pipeline_department(
        self, pipeline: Pipeline, directory: DirectoryCache
    ) -> Department | None:
        if pipeline.department_id is not None:
            return await directory.department(pipeline.department_id)
        for department in await directory.departments():
            if department.pipeline_id == pipeline.id:
                return department
        return await directory.department_by_name(pipeline.name)

    async def _find_department_pipeline(
        self, department: Department, directory: DirectoryCache
    ) -> Pipeline | None:
        if department.pipeline_id is not None:
            pipeline = await directory.pipeline(department.pipeline_id)
            if pipeline is not None:
                return pipeline
        for pipeline in await directory.pipelines():
            if pipeline.department_id == department.id:
                return pipeline
        return await directory.pipeline_by_reference(department.name)

    async def _department_pipeline(
        self, department: Department, directory: DirectoryCache
    ) -> Pipeline:
        pipeline = await self._find_department_pipeline(department, directory)
        if pipeline is None:
            raise DepartmentMappingNotFoundError(f"pipeline for {department.name}")
        return pipeline

    async def _fallback_department(
        self, tray: Tray, directory: DirectoryCache
    ) -> Department:
        for name in self._config.DEFAULT_DEPARTMENT_ORDER:
            department = await directory.department_by_name(name)
            if department is not None:
                return department
        departments = await directory.departments()
        if not departments:
            raise NoDepartmentResolvableError(tray.id)
        return departments[0]

    async def _entry_stage(
        self, tray: Tray, pipeline: Pipeline, directory: DirectoryCache
    ) -> tuple[Stage, bool]:
        stages = await directory.stages(pipeline.id)
        if not stages:
            raise DepartmentMappingNotFoundError(f"stages of {pipeline.name}")

        by_name = {stage.name.strip().casefold(): stage for stage in reversed(stages)}
        return_name = self._config.RETURN_STAGE_NAME.strip().casefold()
        if return_name in by_name and await directory.has_return_marker(
            tray.service_order_id
        ):
            return by_name[return_name], True

        for name in self._config.NEW_STAGE_NAMES:
            stage = by_name.get(name.strip().casefold())
            if stage is not None:
                return stage, False
        return stages[0], False

    async def send_all_trays(
        self, service_order_id: UUID, actor: str | None = None
    ) -> DispatchReport:
        """
        Send every numbered, non-sales tray of a service order to its department.

        Trays are processed one after another. A failing tray is reported and
        the batch moves on. A call made while another dispatch is still
        pending returns immediately with ``already_running`` set.

        Args:
            service_order_id: Service order whose trays are dispatched
            actor: User performing the dispatch

        Returns:
            Routed trays, per-tray failures and skipped tray ids
        """
        if self._dispatch_in_flight:
            logger.info(
                "Dispatch already running, ignoring request",
                service_order_id=str(service_order_id),
            )
            return DispatchReport(service_order_id=service_order_id, already_running=True)

        self._dispatch_in_flight = True
        actor = actor or self._config.SYSTEM_ACTOR
        bind_operation(actor)
        routed: list[RoutedTray] = []
        failures: list[DispatchFailure] = []
        skipped: list[UUID] = []
        try:
            directory = DirectoryCache(self._uow.directory)
            trays = await self._uow.trays.get_by_service_order(service_order_id)
            for tray in trays:
                if tray.is_exempt(self._config.SALES_TRAY_PREFIXES):
                    skipped.append(tray.id)
                    continue
                try:
                    routed.append(await self._route_tray(tray, directory, actor))
                except DomainError as e:
                    logger.warning(
                        "Tray not dispatched",
                        tray_id=str(tray.id),
                        tray_number=tray.number,
                        error_code=e.code,
                        error=e.message,
                    )
                    failures.append(
                        DispatchFailure(tray_id=tray.id, number=tray.number, error=e.to_dict())
                    )
        finally:
            self._dispatch_in_flight = False

        logger.info(
            "Dispatched service order trays",
            service_order_id=str(service_order_id),
            routed=len(routed),
            failed=len(failures),
            skipped=len(skipped),
        )
        return DispatchReport(
            service_order_id=service_order_id,
            routed=tuple(routed),
            failures=tuple(failures),
            skipped=tuple(skipped),
        )

    async def _route_tray(
        self, tray: Tray, directory: DirectoryCache, actor: str
    ) -> RoutedTray:
        items = await self._uow.items.get_by_tray(tray.id)
        destination = await self.resolve_destination(tray, items, directory=directory)
        department_pipelines: set[UUID] = set()
        for department in await directory.departments():
            pipeline = await self._find_department_pipeline(department, directory)
            if pipeline is not None:
                department_pipelines.add(pipeline.id)

        removed: list[UUID] = []
        async with self._uow.transaction():
            for placement in await self._uow.placements.get_by_tray(tray.id):
                if (
                    placement.pipeline_id != destination.pipeline_id
                    and placement.pipeline_id in department_pipelines
                ):
                    await self._uow.placements.remove(tray.id, placement.pipeline_id)
                    removed.append(placement.pipeline_id)
            await self._uow.placements.place(
                Placement(
                    tray_id=tray.id,
                    pipeline_id=destination.pipeline_id,
                    stage_id=destination.stage_id,
                )
            )

        await self._audit.log_first_occurrence(
            SubjectType.TRAY,
            tray.id,
            EventKind.TRAY_MOVED_TO_DEPARTMENT,
            f"Tray {tray.number} sent to {destination.department_name} "
            f"({destination.stage_name})",
            {
                "tray_number": tray.number,
                "department_id": str(destination.department_id),
                "pipeline_id": str(destination.pipeline_id),
                "stage_id": str(destination.stage_id),
                "is_return": destination.is_return,
            },
            actor,
        )

        technician_ids = [item.technician_id for item in items if item.technician_id]
        if tray.technician_id:
            technician_ids.append(tray.technician_id)
        await self._dispatcher.dispatch(
            TrayRouted(
                actor=actor,
                tray_id=tray.id,
                tray_number=tray.number or "",
                service_order_id=tray.service_order_id,
                department_name=destination.department_name,
                pipeline_id=destination.pipeline_id,
                stage_id=destination.stage_id,
                technician_ids=tuple(dict.fromkeys(technician_ids)),
            )
        )
        return RoutedTray(
            tray_id=tray.id,
            number=tray.number or "",
            destination=destination,
            removed_from=tuple(removed),
        )
