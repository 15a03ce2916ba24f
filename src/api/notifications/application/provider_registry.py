"""Registry of notification providers keyed by name."""

from __future__ import annotations

from typing import TYPE_CHECKING

from notifications.application.observability import DefaultNotificationProbe
from notifications.ports.exceptions import ProviderNotFoundError

if TYPE_CHECKING:
    from notifications.application.observability import NotificationProbe
    from notifications.domain.value_objects import NotificationChannel
    from notifications.ports.providers import NotificationProvider


class ProviderRegistry:
    """Maps provider names to provider instances.

    Registration order matters: when several providers support a channel,
    get_for_channel returns the first one registered that is available.
    The registry is populated at startup and read afterwards.
    """

    def __init__(self, probe: NotificationProbe | None = None) -> None:
        self._providers: dict[str, NotificationProvider] = {}
        self._probe = probe or DefaultNotificationProbe()

    def register(self, name: str, provider: NotificationProvider) -> None:
        """Register (or replace) a provider under ``name``."""
        self._providers[name] = provider
        self._probe.provider_registered(
            name, sorted(channel.value for channel in provider.supported_channels())
        )

    def get(self, name: str) -> NotificationProvider:
        """Return the provider registered as ``name``.

        Raises:
            ProviderNotFoundError: Nothing is registered under that name
        """
        try:
            return self._providers[name]
        except KeyError:
            raise ProviderNotFoundError(name) from None

    def is_available(self, name: str) -> bool:
        provider = self._providers.get(name)
        return provider is not None and provider.is_available()

    def get_for_channel(self, channel: NotificationChannel) -> NotificationProvider | None:
        """Return the first available provider that supports ``channel``."""
        for provider in self._providers.values():
            if channel in provider.supported_channels() and provider.is_available():
                return provider
        return None

    def has_provider_for_channel(self, channel: NotificationChannel) -> bool:
        """Whether any provider, available or not, supports ``channel``."""
        return any(
            channel in provider.supported_channels()
            for provider in self._providers.values()
        )

    def providers(self) -> dict[str, NotificationProvider]:
        return dict(self._providers)

    def __len__(self) -> int:
        return len(self._providers)
