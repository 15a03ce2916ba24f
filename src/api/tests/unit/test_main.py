"""Unit tests for main FastAPI application configuration."""

from __future__ import annotations

from fastapi.testclient import TestClient

from infrastructure.version import __version__
from main import app


class TestApplicationRoutes:
    """Tests for the routes mounted on the application."""

    def test_outbox_routes_are_registered(self):
        paths = {route.path for route in app.routes}

        assert {
            "/health",
            "/health/outbox",
            "/outbox/trigger",
            "/outbox/dead-letter",
            "/outbox/events/{event_id}",
            "/outbox/events/{event_id}/reset",
        } <= paths

    def test_health_reports_version(self):
        """The basic health check does not need the lifespan to run."""
        client = TestClient(app)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}

    def test_app_metadata(self):
        assert app.title == "Storefront Notifications"
        assert app.version == __version__
