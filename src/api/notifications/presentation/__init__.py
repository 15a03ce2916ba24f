"""Presentation layer for outbox and notification operations."""

from notifications.presentation.routes import router

__all__ = ["router"]
