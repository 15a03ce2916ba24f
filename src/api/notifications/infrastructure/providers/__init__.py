"""Channel provider implementations."""

from notifications.infrastructure.providers.logging_providers import (
    LoggingProvider,
    logging_providers,
)
from notifications.infrastructure.providers.mailgun import MailgunEmailProvider
from notifications.infrastructure.providers.twilio import TwilioMessagingProvider

__all__ = [
    "LoggingProvider",
    "MailgunEmailProvider",
    "TwilioMessagingProvider",
    "logging_providers",
]
