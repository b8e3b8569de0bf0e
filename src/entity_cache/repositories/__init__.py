"""Repository layer for data access.

This layer wraps the external HTTP client behind the Transport protocol.
The transport is protocol-based (structural typing), not inheritance-based:
any class implementing get/post/put/delete coroutines satisfies it.
"""

from entity_cache.protocols import Transport

from .httpx_transport import BearerAuth, HttpxTransport

__all__ = [
    "BearerAuth",
    "HttpxTransport",
    "Transport",
]
