"""Tray entity."""

from collections.abc import Iterable
from uuid import UUID

from pydantic import Field, field_validator

from ...shared.base import Entity
from ..value_objects.enums import TrayStatus


class Tray(Entity):
    """A physical container grouping the instruments of one service order.

    A tray without a number is the service order's placeholder: it holds
    instruments that have not been assigned to a numbered tray yet.
    """

    service_order_id: UUID
    number: str | None = None
    status: TrayStatus = TrayStatus.NEW
    parent_tray_id: UUID | None = None
    technician_id: UUID | None = None
    attachment_count: int = Field(default=0, ge=0)

    @field_validator("number")
    @classmethod
    def normalize_number(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def is_placeholder(self) -> bool:
        return self.number is None

    @property
    def has_attachments(self) -> bool:
        return self.attachment_count > 0

    @property
    def is_split_child(self) -> bool:
        return self.parent_tray_id is not None

    def is_sales(self, prefixes: Iterable[str]) -> bool:
        """Sales trays are exempt from routing and the single-department rule."""
        if self.number is None:
            return False
        number = self.number.casefold()
        return any(number.startswith(prefix.casefold()) for prefix in prefixes if prefix)

    def is_exempt(self, prefixes: Iterable[str]) -> bool:
        return self.is_placeholder or self.is_sales(prefixes)

    def mark_split(self, owner_id: UUID) -> None:
        self.status = TrayStatus.SPLIT
        self.technician_id = owner_id
        self.mark_updated()

    def finalize(self) -> None:
        self.status = TrayStatus.FINALIZED
        self.mark_updated()

    def reunite(self) -> None:
        """Back to a single finalized tray once its split children are merged in."""
        self.status = TrayStatus.FINALIZED
        self.technician_id = None
        self.mark_updated()

    @property
    def is_finalized(self) -> bool:
        return self.status == TrayStatus.FINALIZED
