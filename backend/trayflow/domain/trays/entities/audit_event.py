"""Audit event entity."""

from typing import Any
from uuid import UUID

from pydantic import Field

from ...shared.base import Entity
from ..value_objects.enums import SubjectType


class AuditEvent(Entity):
    """Append-only record of something the engine did to a tray or item."""

    subject_type: SubjectType
    subject_id: UUID
    event_kind: str
    message: str
    payload: dict[str, Any] = Field(default_factory=dict)
    actor: str
