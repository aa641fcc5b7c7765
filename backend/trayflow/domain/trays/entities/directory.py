"""Read-only directory entities: departments, pipelines, stages, instruments, technicians."""

from uuid import UUID

from pydantic import Field

from ...shared.base import Entity


class Department(Entity):
    """A work-queue category. Its queue lives in ``pipeline_id``.

    When ``pipeline_id`` is unset the queue is the pipeline whose name equals
    the department name (case-insensitive).
    """

    name: str
    pipeline_id: UUID | None = None


class Pipeline(Entity):
    name: str
    department_id: UUID | None = None


class Stage(Entity):
    pipeline_id: UUID
    name: str
    position: int = Field(default=0, ge=0)


class Instrument(Entity):
    """An instrument type.

    It maps to a department either directly through ``department_id`` or
    through ``pipeline_ref``, which historically holds a pipeline id or a
    free-text pipeline name.
    """

    name: str
    department_id: UUID | None = None
    pipeline_ref: str | None = None


class Technician(Entity):
    name: str
    username: str = ""

    @property
    def label(self) -> str:
        return self.username or self.name
