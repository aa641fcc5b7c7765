"""Routing results: where a tray goes and what a batch dispatch did."""

from typing import Any
from uuid import UUID

from ...shared.base import ValueObject


class RouteDestination(ValueObject):
    """Resolved department queue for a tray."""

    department_id: UUID
    department_name: str
    pipeline_id: UUID
    pipeline_name: str
    stage_id: UUID
    stage_name: str
    is_return: bool = False
    is_fallback: bool = False


class Placement(ValueObject):
    """A tray sitting in a stage of a department pipeline."""

    tray_id: UUID
    pipeline_id: UUID
    stage_id: UUID


class RoutedTray(ValueObject):
    tray_id: UUID
    number: str
    destination: RouteDestination
    removed_from: tuple[UUID, ...] = ()


class DispatchFailure(ValueObject):
    tray_id: UUID
    number: str | None
    error: dict[str, Any]


class DispatchReport(ValueObject):
    """Combined outcome of sending every tray of a service order to its department."""

    service_order_id: UUID
    already_running: bool = False
    routed: tuple[RoutedTray, ...] = ()
    failures: tuple[DispatchFailure, ...] = ()
    skipped: tuple[UUID, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.already_running and not self.failures
