"""Application-layer probes for the notifications bounded context."""

from notifications.application.observability.notification_probe import (
    DefaultNotificationProbe,
    NotificationProbe,
)

__all__ = [
    "DefaultNotificationProbe",
    "NotificationProbe",
]
