"""Application services for the notifications bounded context."""

from notifications.application.orchestrator import NotificationOrchestrator
from notifications.application.provider_registry import ProviderRegistry
from notifications.application.template_resolver import TemplateResolver

__all__ = [
    "NotificationOrchestrator",
    "ProviderRegistry",
    "TemplateResolver",
]
