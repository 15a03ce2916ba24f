"""Ports (protocols and exceptions) for the notifications bounded context."""

from notifications.ports.exceptions import (
    ProviderNotFoundError,
    ProviderSendError,
    TemplateSyntaxError,
)
from notifications.ports.providers import NotificationProvider
from notifications.ports.repositories import (
    IPreferenceRepository,
    ITemplateRepository,
)

__all__ = [
    "IPreferenceRepository",
    "ITemplateRepository",
    "NotificationProvider",
    "ProviderNotFoundError",
    "ProviderSendError",
    "TemplateSyntaxError",
]
