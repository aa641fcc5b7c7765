"""Per-operation memo over the read-only directory."""

from uuid import UUID

from ..entities.directory import Department, Instrument, Pipeline, Stage, Technician
from ..repositories.directory_repository import DirectoryRepository


class DirectoryCache:
    """
    Caches directory reads for the lifetime of one operation.

    Create a new cache per operation: directory rows may change between
    operations, never during one.
    """

    def __init__(self, directory: DirectoryRepository) -> None:
        self._directory = directory
        self._departments: list[Department] | None = None
        self._pipelines: list[Pipeline] | None = None
        self._stages: dict[UUID, list[Stage]] = {}
        self._instruments: dict[UUID, Instrument | None] = {}
        self._technicians: dict[UUID, Technician | None] = {}
        self._return_markers: dict[UUID, bool] = {}

    async def departments(self) -> list[Department]:
        if self._departments is None:
            self._departments = await self._directory.get_departments()
        return self._departments

    async def pipelines(self) -> list[Pipeline]:
        if self._pipelines is None:
            self._pipelines = await self._directory.get_pipelines()
        return self._pipelines

    async def stages(self, pipeline_id: UUID) -> list[Stage]:
        if pipeline_id not in self._stages:
            stages = await self._directory.get_stages(pipeline_id)
            self._stages[pipeline_id] = sorted(stages, key=lambda s: s.position)
        return self._stages[pipeline_id]

    async def department(self, department_id: UUID) -> Department | None:
        for department in await self.departments():
            if department.id == department_id:
                return department
        return None

    async def department_by_name(self, name: str) -> Department | None:
        key = name.strip().casefold()
        for department in await self.departments():
            if department.name.strip().casefold() == key:
                return department
        return None

    async def pipeline(self, pipeline_id: UUID) -> Pipeline | None:
        for pipeline in await self.pipelines():
            if pipeline.id == pipeline_id:
                return pipeline
        return None

    async def pipeline_by_reference(self, reference: str) -> Pipeline | None:
        """Find a pipeline by id or by case-insensitive name."""
        ref = reference.strip()
        if not ref:
            return None
        pipelines = await self.pipelines()
        for pipeline in pipelines:
            if str(pipeline.id) == ref.lower():
                return pipeline
        key = ref.casefold()
        for pipeline in pipelines:
            if pipeline.name.strip().casefold() == key:
                return pipeline
        return None

    async def instruments(self, instrument_ids: list[UUID]) -> dict[UUID, Instrument]:
        missing = [i for i in dict.fromkeys(instrument_ids) if i not in self._instruments]
        if missing:
            found = {i.id: i for i in await self._directory.get_instruments(missing)}
            for instrument_id in missing:
                self._instruments[instrument_id] = found.get(instrument_id)
        return {
            instrument_id: instrument
            for instrument_id in instrument_ids
            if (instrument := self._instruments.get(instrument_id)) is not None
        }

    async def technicians(self, technician_ids: list[UUID]) -> dict[UUID, Technician]:
        missing = [t for t in dict.fromkeys(technician_ids) if t not in self._technicians]
        if missing:
            found = {t.id: t for t in await self._directory.get_technicians(missing)}
            for technician_id in missing:
                self._technicians[technician_id] = found.get(technician_id)
        return {
            technician_id: technician
            for technician_id in technician_ids
            if (technician := self._technicians.get(technician_id)) is not None
        }

    async def has_return_marker(self, service_order_id: UUID) -> bool:
        if service_order_id not in self._return_markers:
            self._return_markers[service_order_id] = (
                await self._directory.has_return_marker(service_order_id)
            )
        return self._return_markers[service_order_id]

    async def is_exempt_department(
        self, department_id: UUID | None, exempt_keys: set[str]
    ) -> bool:
        """Whether items of ``department_id`` skip identity tracking."""
        if department_id is None or not exempt_keys:
            return False
        if str(department_id) in exempt_keys:
            return True
        department = await self.department(department_id)
        return department is not None and department.name.strip().lower() in exempt_keys
