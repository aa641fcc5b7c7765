"""
Service Dependencies for Domain Service Wiring.

Builds the tray services over one unit of work so they share the same
repositories, audit baselines and event dispatcher.
"""

from trayflow.core.config import Settings, get_settings
from trayflow.domain.trays.events.domain_events import DomainEventDispatcher
from trayflow.domain.trays.repositories.notification_sender import NotificationSender
from trayflow.domain.trays.repositories.unit_of_work import TrayUnitOfWork
from trayflow.domain.trays.services.consolidator import Consolidator
from trayflow.domain.trays.services.department_router import DepartmentRouter
from trayflow.domain.trays.services.reconciliation_log import ReconciliationLog
from trayflow.domain.trays.services.split_allocator import SplitAllocator
from trayflow.domain.trays.services.tray_split_orchestrator import TraySplitOrchestrator
from trayflow.infrastructure.events.notification_handler import (
    TechnicianNotificationHandler,
)
from trayflow.infrastructure.events.notification_sender import LoggingNotificationSender


class TrayServices:
    """The engine's services, wired over a single unit of work."""

    def __init__(
        self,
        unit_of_work: TrayUnitOfWork,
        notification_sender: NotificationSender | None = None,
        config: Settings | None = None,
    ) -> None:
        self.config = config or get_settings()
        self.unit_of_work = unit_of_work
        self.dispatcher = DomainEventDispatcher()
        self.dispatcher.register_handler(
            TechnicianNotificationHandler(notification_sender or LoggingNotificationSender())
        )
        self.audit_log = ReconciliationLog(unit_of_work, self.config)
        self.allocator = SplitAllocator(unit_of_work, config=self.config)
        self.consolidator = Consolidator(unit_of_work)
        self.router = DepartmentRouter(
            unit_of_work, self.audit_log, self.dispatcher, self.config
        )
        self.orchestrator = TraySplitOrchestrator(
            unit_of_work,
            allocator=self.allocator,
            consolidator=self.consolidator,
            audit_log=self.audit_log,
            dispatcher=self.dispatcher,
            config=self.config,
        )
