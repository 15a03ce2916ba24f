"""HTTP routes for outbox operations.

Operators inspect delivery health and dead letters here, and redeliver
dead-lettered events after fixing their cause.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from infrastructure.outbox.dependencies import get_outbox_event_service
from infrastructure.outbox.processor import OutboxProcessor
from infrastructure.outbox.service import OutboxEventService
from notifications.dependencies import get_outbox_processor
from notifications.presentation.models import (
    OutboxEventResponse,
    OutboxHealthResponse,
    OutboxStatisticsResponse,
    TriggerResponse,
)
from shared_kernel.outbox.exceptions import OutboxEventNotFoundError

router = APIRouter(tags=["outbox"])

ServiceDep = Annotated[OutboxEventService, Depends(get_outbox_event_service)]
ProcessorDep = Annotated[OutboxProcessor, Depends(get_outbox_processor)]


@router.get("/health/outbox")
async def outbox_health(
    service: ServiceDep,
    processor: ProcessorDep,
    tenant_id: str | None = None,
) -> OutboxHealthResponse:
    """Report event counts per status and the processor's state."""
    statistics = await service.get_statistics(tenant_id=tenant_id)
    processor_status = processor.status()
    healthy = processor_status["running"] or not processor_status["enabled"]
    return OutboxHealthResponse(
        status="ok" if healthy else "stopped",
        statistics=OutboxStatisticsResponse.from_domain(statistics),
        processor=processor_status,
    )


@router.post("/outbox/trigger")
async def trigger_processing(processor: ProcessorDep) -> TriggerResponse:
    """Run the ready and retry sweeps immediately."""
    claimed = await processor.trigger_processing()
    return TriggerResponse(**claimed)


@router.get("/outbox/dead-letter")
async def list_dead_letter_events(
    service: ServiceDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
    tenant_id: str | None = None,
) -> list[OutboxEventResponse]:
    """List dead-lettered events, most recent first."""
    events = await service.get_dead_letter_events(
        limit=limit, offset=offset, tenant_id=tenant_id
    )
    return [OutboxEventResponse.from_domain(event) for event in events]


@router.get("/outbox/events/{event_id}")
async def get_event(event_id: UUID, service: ServiceDep) -> OutboxEventResponse:
    """Get a single outbox event.

    Raises:
        HTTPException: 404 if the event does not exist
    """
    try:
        event = await service.get_event(event_id)
    except OutboxEventNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return OutboxEventResponse.from_domain(event)


@router.post("/outbox/events/{event_id}/reset")
async def reset_event(event_id: UUID, service: ServiceDep) -> OutboxEventResponse:
    """Return an event to PENDING for redelivery.

    Raises:
        HTTPException: 404 if the event does not exist, 409 if it is
            currently being processed or changed concurrently
    """
    if not await service.reset_for_retry(event_id):
        try:
            current = await service.get_event(event_id)
        except OutboxEventNotFoundError as e:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=str(e)
            ) from e
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Event {event_id} cannot be reset while {current.status.value}",
        )
    return OutboxEventResponse.from_domain(await service.get_event(event_id))
