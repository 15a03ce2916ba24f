"""Notifications bounded context.

Turns outbox events into customer messages: resolves preferences, renders
localized templates and dispatches to channel providers.
"""
