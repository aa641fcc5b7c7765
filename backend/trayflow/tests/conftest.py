"""Shared fixtures: an in-memory unit of work seeded with a workshop directory."""

from uuid import uuid4

import pytest

from trayflow.core.config import Settings
from trayflow.domain.trays.services.consolidator import Consolidator
from trayflow.domain.trays.services.department_router import DepartmentRouter
from trayflow.domain.trays.services.reconciliation_log import ReconciliationLog
from trayflow.domain.trays.services.split_allocator import SplitAllocator
from trayflow.domain.trays.services.tray_split_orchestrator import TraySplitOrchestrator
from trayflow.infrastructure.events.notification_sender import InMemoryNotificationSender
from trayflow.infrastructure.memory.unit_of_work import InMemoryUnitOfWork
from trayflow.infrastructure.service_dependencies import TrayServices

from .factories import TrayFactory, Workshop


@pytest.fixture
def config():
    """Settings independent of the environment."""
    return Settings(_env_file=None, EXEMPT_DEPARTMENTS=["Horeca"])


@pytest.fixture
def uow():
    return InMemoryUnitOfWork()


@pytest.fixture
def workshop(uow):
    return Workshop().seed(uow)


@pytest.fixture
def service_order_id():
    return uuid4()


@pytest.fixture
def tray(uow, service_order_id):
    """Numbered tray 12 of the service order."""
    return uow.add_tray(TrayFactory.create(service_order_id, number="12"))


@pytest.fixture
def notifications():
    return InMemoryNotificationSender()


@pytest.fixture
def services(uow, workshop, notifications, config):
    return TrayServices(uow, notifications, config)


@pytest.fixture
def allocator(uow, config):
    return SplitAllocator(uow, config=config)


@pytest.fixture
def consolidator(uow):
    return Consolidator(uow)


@pytest.fixture
def audit_log(services) -> ReconciliationLog:
    return services.audit_log


@pytest.fixture
def router(services) -> DepartmentRouter:
    return services.router


@pytest.fixture
def orchestrator(services) -> TraySplitOrchestrator:
    return services.orchestrator
