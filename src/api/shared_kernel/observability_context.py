"""Observation context for domain-oriented observability.

Observation contexts collect and manage contextual metadata for instrumentation,
following the Domain Oriented Observability pattern. A context is passed
explicitly to the probes that need it; nothing is stored in ambient state.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Immutable context containing metadata for observability.

    Attributes:
        request_id: Unique identifier for the current request/operation.
        tenant_id: Multi-tenant identifier (if applicable).
        event_id: Outbox event being handled (if applicable).
        extra: Additional contextual metadata.

    Example:
        context = ObservationContext(tenant_id="acme", event_id=str(event.id))
        probe = DefaultNotificationProbe().with_context(context)
    """

    request_id: str | None = None
    tenant_id: str | None = None
    event_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging.

        Only includes non-None values to keep logs clean.
        """
        result: dict[str, Any] = {}
        if self.request_id is not None:
            result["request_id"] = self.request_id
        if self.tenant_id is not None:
            result["tenant_id"] = self.tenant_id
        if self.event_id is not None:
            result["event_id"] = self.event_id
        result.update(self.extra)
        return result

    def with_event(self, event_id: str, tenant_id: str | None = None) -> ObservationContext:
        """Create a new context scoped to one outbox event."""
        return replace(
            self,
            event_id=event_id,
            tenant_id=tenant_id if tenant_id is not None else self.tenant_id,
        )

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        """Create a new context with additional metadata."""
        return replace(self, extra={**self.extra, **kwargs})
