"""Infrastructure layer for the notifications bounded context."""

from notifications.infrastructure.models import (
    CustomerNotificationPreferenceModel,
    NotificationTemplateModel,
)
from notifications.infrastructure.preference_repository import PreferenceRepository
from notifications.infrastructure.template_repository import TemplateRepository

__all__ = [
    "CustomerNotificationPreferenceModel",
    "NotificationTemplateModel",
    "PreferenceRepository",
    "TemplateRepository",
]
