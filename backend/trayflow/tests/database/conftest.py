"""Fixtures for the SQLModel adapter: a fresh in-memory SQLite database per test."""

import pytest

from trayflow.infrastructure.database.engine import create_db_engine, create_tables
from trayflow.infrastructure.database.sqlmodel_entities import (
    DepartmentRow,
    InstrumentRow,
    PipelineRow,
    StageRow,
    TechnicianRow,
)
from trayflow.infrastructure.database.unit_of_work import SqlModelUnitOfWork

from ..factories import Workshop


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_uow(engine):
    with SqlModelUnitOfWork(engine) as uow:
        yield uow


@pytest.fixture
def sql_workshop(sql_uow):
    """The test workshop written to directory tables."""
    workshop = Workshop()
    session = sql_uow.session
    for position, department in enumerate(workshop.departments):
        session.add(
            DepartmentRow(
                id=department.id,
                name=department.name,
                pipeline_id=department.pipeline_id,
                position=position,
            )
        )
    for position, pipeline in enumerate(workshop.pipelines):
        session.add(
            PipelineRow(
                id=pipeline.id,
                name=pipeline.name,
                department_id=pipeline.department_id,
                position=position,
            )
        )
    for stages in workshop.stages.values():
        for stage in stages.values():
            session.add(
                StageRow(
                    id=stage.id,
                    pipeline_id=stage.pipeline_id,
                    name=stage.name,
                    position=stage.position,
                )
            )
    for instrument in workshop.instruments:
        session.add(
            InstrumentRow(
                id=instrument.id,
                name=instrument.name,
                department_id=instrument.department_id,
                pipeline=instrument.pipeline_ref,
            )
        )
    for technician in workshop.technicians:
        session.add(
            TechnicianRow(id=technician.id, name=technician.name, username=technician.username)
        )
    session.commit()
    return workshop
