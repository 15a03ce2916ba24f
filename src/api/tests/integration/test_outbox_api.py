"""Integration tests for the outbox operator API.

The application runs with its real lifespan against a SQLite database; the
scheduled processor is disabled so sweeps only run when triggered.
"""

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from infrastructure.database.dependencies import close_database_connections
from infrastructure.outbox.dependencies import get_outbox_event_service
from infrastructure.settings import (
    get_database_settings,
    get_notification_settings,
    get_outbox_settings,
    get_settings,
)
from notifications.dependencies import (
    get_notification_orchestrator,
    get_outbox_processor,
    get_provider_registry,
    get_template_resolver,
)

pytestmark = pytest.mark.integration

_CACHED = (
    get_settings,
    get_database_settings,
    get_outbox_settings,
    get_notification_settings,
    get_outbox_event_service,
    get_provider_registry,
    get_template_resolver,
    get_notification_orchestrator,
    get_outbox_processor,
)


def _clear_caches():
    for getter in _CACHED:
        getter.cache_clear()


@pytest_asyncio.fixture
async def async_client(engine, monkeypatch):
    """Create async HTTP client for testing with lifespan support."""
    monkeypatch.setenv("STOREFRONT_DB_URL", engine.url.render_as_string())
    monkeypatch.setenv("STOREFRONT_OUTBOX_ENABLED", "false")
    await close_database_connections()
    _clear_caches()

    from main import app

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    _clear_caches()


async def _create_event(**overrides):
    values = dict(
        tenant_id="tenant-1",
        event_type="ORDER_PLACED",
        aggregate_id="order-1",
        aggregate_type="order",
        event_data={"orderId": "X1"},
    )
    values.update(overrides)
    return await get_outbox_event_service().create_event(None, **values)


class TestOutboxHealth:
    """Tests for GET /health/outbox."""

    @pytest.mark.asyncio
    async def test_reports_statistics(self, async_client):
        await _create_event()
        await _create_event(tenant_id="tenant-2")

        response = await async_client.get("/health/outbox")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["statistics"]["pending"] == 2
        assert body["statistics"]["total"] == 2
        assert body["processor"]["enabled"] is False

    @pytest.mark.asyncio
    async def test_filters_by_tenant(self, async_client):
        await _create_event()
        await _create_event(tenant_id="tenant-2")

        response = await async_client.get("/health/outbox", params={"tenant_id": "tenant-2"})

        assert response.json()["statistics"]["total"] == 1


class TestOutboxEvents:
    """Tests for event inspection, trigger and reset."""

    @pytest.mark.asyncio
    async def test_get_event(self, async_client):
        event = await _create_event()

        response = await async_client.get(f"/outbox/events/{event.id}")

        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert response.json()["retry_count"] == 0

    @pytest.mark.asyncio
    async def test_get_unknown_event_is_404(self, async_client):
        response = await async_client.get(
            "/outbox/events/00000000-0000-0000-0000-000000000000"
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_trigger_dead_letters_event_without_customer(self, async_client):
        """An event with no customer cannot be delivered and is not retried."""
        event = await _create_event()

        response = await async_client.post("/outbox/trigger")
        await get_outbox_processor().wait_idle()

        assert response.json() == {"ready": 1, "retry": 0}
        dead = (await async_client.get("/outbox/dead-letter")).json()
        assert [item["id"] for item in dead] == [str(event.id)]
        assert dead[0]["error_code"] == "MISSING_CUSTOMER"

    @pytest.mark.asyncio
    async def test_reset_dead_letter_event(self, async_client):
        event = await _create_event()
        service = get_outbox_event_service()
        await service.mark_dead_letter(event.id, "bad data", error_code="X")

        response = await async_client.post(f"/outbox/events/{event.id}/reset")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["retry_count"] == 0
        assert body["error_code"] is None

    @pytest.mark.asyncio
    async def test_reset_processing_event_is_409(self, async_client):
        event = await _create_event()
        await get_outbox_event_service().claim_for_processing(event.id, "other-host")

        response = await async_client.post(f"/outbox/events/{event.id}/reset")

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_dead_letter_limit_is_validated(self, async_client):
        response = await async_client.get("/outbox/dead-letter", params={"limit": 0})

        assert response.status_code == 422
