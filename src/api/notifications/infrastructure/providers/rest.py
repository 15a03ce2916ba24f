"""Shared HTTP plumbing for providers backed by REST APIs."""

from __future__ import annotations

import httpx

from notifications.domain.value_objects import DeliveryStatus, NotificationResponse
from notifications.ports.exceptions import ProviderSendError


async def post_form(
    client: httpx.AsyncClient,
    provider: str,
    url: str,
    data: dict[str, str],
    auth: tuple[str, str],
) -> httpx.Response | NotificationResponse:
    """POST a form and classify failures.

    Returns:
        The response on 2xx, or a REJECTED NotificationResponse on a 4xx
        other than 429

    Raises:
        ProviderSendError: Network errors, timeouts, 429 and 5xx (retryable)
    """
    try:
        response = await client.post(url, data=data, auth=auth)
    except httpx.HTTPError as e:
        raise ProviderSendError(
            f"{provider} request failed: {type(e).__name__}: {e}", retryable=True
        ) from e

    if response.is_success:
        return response

    detail = response.text[:300]
    if response.status_code == 429 or response.status_code >= 500:
        raise ProviderSendError(
            f"{provider} returned HTTP {response.status_code}: {detail}",
            retryable=True,
            error_code=f"HTTP_{response.status_code}",
        )
    return NotificationResponse.failed(
        f"{provider} rejected the message with HTTP {response.status_code}: {detail}",
        error_code=f"HTTP_{response.status_code}",
        status=DeliveryStatus.REJECTED,
    )
