"""
Domain Exceptions

Defines the error taxonomy of the allocation and routing engine. Every error
carries a discriminating ``error_type``, a human message, structured details
and the id of the subject it concerns, so callers can render it directly.
"""

from enum import Enum
from typing import Any
from uuid import UUID


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PERSISTENCE = "persistence"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    code = "domain_error"

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, Any] | None = None,
        subject_id: UUID | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        self.subject_id = subject_id

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a plain dictionary for rendering."""
        return {
            "type": self.error_type.value,
            "code": self.code,
            "message": self.message,
            "subject_id": str(self.subject_id) if self.subject_id else None,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when a precondition fails. No write has been issued."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        subject_id: UUID | None = None,
    ) -> None:
        super().__init__(message, ErrorType.VALIDATION, details, subject_id)


class NotFoundError(DomainError):
    """Raised when a referenced tray, item or mapping is missing."""

    code = "not_found"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        subject_id: UUID | None = None,
    ) -> None:
        super().__init__(message, ErrorType.NOT_FOUND, details, subject_id)


class ConflictError(DomainError):
    """Raised when a concurrent writer changed a row since it was read."""

    code = "conflict"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        subject_id: UUID | None = None,
    ) -> None:
        super().__init__(message, ErrorType.CONFLICT, details, subject_id)


class PersistenceError(DomainError):
    """Raised when an underlying storage call failed."""

    code = "persistence_error"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        subject_id: UUID | None = None,
    ) -> None:
        super().__init__(message, ErrorType.PERSISTENCE, details, subject_id)


# Validation errors
class MixedDepartmentError(ValidationError):
    """Raised when a tray's items resolve to more than one department."""

    code = "mixed_departments"

    def __init__(
        self,
        tray_id: UUID,
        departments: list[str],
        instruments_by_department: dict[str, list[str]],
    ) -> None:
        self.tray_id = tray_id
        self.departments = departments
        self.instruments_by_department = instruments_by_department
        conflict = "; ".join(
            f"{dept}: {', '.join(instruments_by_department.get(dept, []))}"
            for dept in departments
        )
        super().__init__(
            f"Tray {tray_id} mixes instruments from departments "
            f"{', '.join(departments)} ({conflict}); split it before routing",
            {
                "departments": departments,
                "instruments": instruments_by_department,
            },
            tray_id,
        )


class OverAllocationError(ValidationError):
    """Raised when requested quantities exceed what the source holds."""

    code = "over_allocation"

    def __init__(self, item_id: UUID, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Requested {requested} units but item {item_id} only holds {available}",
            {"requested": requested, "available": available},
            item_id,
        )


class TargetEqualsSourceError(ValidationError):
    """Raised when a split destination is the item's current holder."""

    code = "target_equals_source"

    def __init__(self, item_id: UUID, destination: str) -> None:
        self.destination = destination
        super().__init__(
            f"Destination {destination} already holds item {item_id}",
            {"destination": destination},
            item_id,
        )


class EmptyTrayError(ValidationError):
    """Raised when routing a tray that holds no items."""

    code = "empty_tray"

    def __init__(self, tray_id: UUID) -> None:
        super().__init__(f"Tray {tray_id} holds no items", {}, tray_id)


class NotSplittableError(ValidationError):
    """Raised when splitting an item that has no service or part yet."""

    code = "not_splittable"

    def __init__(self, item_id: UUID, kind: str) -> None:
        super().__init__(
            f"Item {item_id} of kind '{kind}' cannot be split; attach a service first",
            {"kind": kind},
            item_id,
        )


class ConservationViolationError(ValidationError):
    """Raised when claimed quantities do not add up to an item's total."""

    code = "conservation_violation"

    def __init__(
        self,
        item_id: UUID,
        claimed: int,
        total: int,
        message: str | None = None,
    ) -> None:
        self.claimed = claimed
        self.total = total
        super().__init__(
            message
            or f"Claims for item {item_id} sum to {claimed}, item holds {total}",
            {"claimed": claimed, "total": total},
            item_id,
        )


class NoDepartmentResolvableError(ValidationError):
    """Raised when no department can be derived and no fallback exists."""

    code = "no_department"

    def __init__(self, tray_id: UUID) -> None:
        super().__init__(
            f"No department could be resolved for tray {tray_id}", {}, tray_id
        )


class TrayNotRoutableError(ValidationError):
    """Raised when routing a placeholder or sales tray."""

    code = "tray_not_routable"

    def __init__(self, tray_id: UUID, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Tray {tray_id} cannot be routed: {reason}", {"reason": reason}, tray_id
        )


class TrayNumberUnavailableError(ValidationError):
    """Raised when a tray number is already in use."""

    code = "tray_number_unavailable"

    def __init__(self, number: str, existing_tray_id: UUID | None = None) -> None:
        self.number = number
        super().__init__(
            f"Tray number '{number}' is already in use",
            {"number": number},
            existing_tray_id,
        )


class DuplicatePlaceholderError(ValidationError):
    """Raised when a service order would get a second numberless tray."""

    code = "duplicate_placeholder"

    def __init__(self, service_order_id: UUID, existing_tray_id: UUID) -> None:
        super().__init__(
            f"Service order {service_order_id} already has placeholder tray "
            f"{existing_tray_id}",
            {"service_order_id": str(service_order_id)},
            existing_tray_id,
        )


# Not found errors
class TrayNotFoundError(NotFoundError):
    """Raised when a tray is not found."""

    def __init__(self, tray_id: UUID) -> None:
        super().__init__(
            f"Tray not found: {tray_id}", {"entity_type": "tray"}, tray_id
        )


class LineItemNotFoundError(NotFoundError):
    """Raised when a line item is not found."""

    def __init__(self, item_id: UUID) -> None:
        super().__init__(
            f"Line item not found: {item_id}", {"entity_type": "line_item"}, item_id
        )


class DepartmentMappingNotFoundError(NotFoundError):
    """Raised when a department or pipeline reference cannot be resolved."""

    def __init__(self, reference: str, subject_id: UUID | None = None) -> None:
        self.reference = reference
        super().__init__(
            f"No department mapping for '{reference}'",
            {"entity_type": "department", "reference": reference},
            subject_id,
        )


# Conflict errors
class QuantityConflictError(ConflictError):
    """Raised when the stored quantity differs from the caller's copy."""

    code = "quantity_conflict"

    def __init__(self, item_id: UUID, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Item {item_id} changed since it was read "
            f"(expected quantity {expected}, found {actual}); reload and try again",
            {"expected": expected, "actual": actual},
            item_id,
        )


# Persistence errors
class PartialSplitError(PersistenceError):
    """Raised when a multi-tray split failed after some writes were issued."""

    code = "partial_split"

    def __init__(
        self,
        tray_id: UUID,
        completed: list[str],
        pending: list[str],
        rolled_back: bool,
        cause: str,
    ) -> None:
        self.completed = completed
        self.pending = pending
        self.rolled_back = rolled_back
        state = "rolled back" if rolled_back else "left partially applied"
        super().__init__(
            f"Split of tray {tray_id} failed and was {state}: {cause}",
            {
                "completed": completed,
                "pending": pending,
                "rolled_back": rolled_back,
                "cause": cause,
            },
            tray_id,
        )
