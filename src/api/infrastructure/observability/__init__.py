"""Infrastructure probes.

Probes for shared infrastructure (the database engine) live here; outbox
and notification probes live with the code they instrument.
"""

from infrastructure.observability.probes import (
    ConnectionProbe,
    DefaultConnectionProbe,
)

__all__ = [
    "ConnectionProbe",
    "DefaultConnectionProbe",
]
