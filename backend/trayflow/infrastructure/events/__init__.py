"""Event handlers and notification adapters."""

from .notification_handler import TechnicianNotificationHandler
from .notification_sender import InMemoryNotificationSender, LoggingNotificationSender

__all__ = [
    "InMemoryNotificationSender",
    "LoggingNotificationSender",
    "TechnicianNotificationHandler",
]
