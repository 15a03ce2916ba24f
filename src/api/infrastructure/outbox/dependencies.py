"""Outbox dependencies.

Provides the application-scoped OutboxEventService. Does NOT import from
bounded contexts.
"""

from functools import lru_cache

from infrastructure.database.dependencies import get_session_factory
from infrastructure.outbox.service import OutboxEventService
from infrastructure.settings import get_outbox_settings
from shared_kernel.outbox.observability import DefaultOutboxEventServiceProbe


@lru_cache
def get_outbox_event_service() -> OutboxEventService:
    """Get the application-scoped OutboxEventService (singleton).

    Producers pass their own session to create_event so the event commits
    with their business change.
    """
    settings = get_outbox_settings()
    return OutboxEventService(
        session_factory=get_session_factory(),
        backoff=settings.backoff_policy(),
        probe=DefaultOutboxEventServiceProbe(),
        default_max_retries=settings.max_retries,
    )
