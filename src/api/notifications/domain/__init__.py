"""Domain layer for the notifications bounded context."""
