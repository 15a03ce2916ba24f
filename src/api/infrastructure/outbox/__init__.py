"""Infrastructure layer for the outbox pattern.

Contains the SQLAlchemy model, repository, state-transition service and
the scheduled processor that delivers outbox events.
"""

from infrastructure.outbox.models import OutboxEventModel
from infrastructure.outbox.processor import OutboxProcessor
from infrastructure.outbox.repository import OutboxRepository
from infrastructure.outbox.service import OutboxEventService

__all__ = [
    "OutboxEventModel",
    "OutboxEventService",
    "OutboxProcessor",
    "OutboxRepository",
]
