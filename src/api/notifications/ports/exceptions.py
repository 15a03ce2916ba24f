"""Domain exceptions for the notifications bounded context.

These exceptions represent errors raised while authoring templates or
talking to providers. The orchestrator translates delivery-time errors
into per-channel results; it never lets them escape raw.
"""


class TemplateSyntaxError(Exception):
    """Raised when a template body has malformed placeholder syntax.

    Templates are validated when they are registered. A stored template
    that still fails to parse is a configuration error at delivery time.
    """

    pass


class ProviderNotFoundError(Exception):
    """Raised when no provider is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No notification provider registered as {name!r}")
        self.name = name


class ProviderSendError(Exception):
    """Raised by a provider when a message could not be handed off.

    Attributes:
        retryable: Whether sending the same message later could succeed
        error_code: Provider-specific or DeliveryErrorCode value
    """

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.error_code = error_code
