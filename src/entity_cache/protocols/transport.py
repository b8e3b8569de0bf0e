"""Transport protocol.

Defines the interface for the client that performs the actual network
I/O and returns parsed response bodies.

Implementations can include:
- httpx.AsyncClient (default, see repositories.HttpxTransport)
- An in-memory fake for tests
- Any client with retries, tracing or auth layered on top
"""

from typing import Any, Protocol, runtime_checkable

from entity_cache.dto import RequestOptions


@runtime_checkable
class Transport(Protocol):
    """Protocol for the network collaborator used by entity services.

    Any type that implements these coroutines satisfies the protocol,
    no explicit inheritance needed. Failures are raised, never returned.

    Example:
        ```python
        from entity_cache.protocols import Transport

        transport: Transport = HttpxTransport.create()
        transport: Transport = RecordingTransport()
        ```
    """

    async def get(self, url: str, options: RequestOptions | None = None) -> Any:
        """Issue a GET request.

        Args:
            url: Fully resolved URL
            options: Request options (never carries alternate_endpoint_format)

        Returns:
            The parsed response body
        """
        ...

    async def post(self, url: str, body: Any, options: RequestOptions | None = None) -> Any:
        """Issue a POST request with ``body`` as payload."""
        ...

    async def put(self, url: str, body: Any, options: RequestOptions | None = None) -> Any:
        """Issue a PUT request with ``body`` as payload."""
        ...

    async def delete(self, url: str, options: RequestOptions | None = None) -> Any:
        """Issue a DELETE request."""
        ...
