"""httpx-based transport.

Performs the network I/O for entity services using ``httpx.AsyncClient``
and returns parsed response bodies.

Key features:
- Shared async client with connection pooling
- Bearer token attached per request, controlled by ``with_credentials``
- JSON or text bodies selected by ``response_type``
- Every failure raised as ``TransportError`` (no retries)
"""

import logging
from collections.abc import Generator
from typing import Any

import httpx

from entity_cache.config import get_http_client, settings
from entity_cache.dto import RequestOptions
from entity_cache.exceptions import TransportError

logger = logging.getLogger(__name__)


class BearerAuth(httpx.Auth):
    """Attach ``Authorization: Bearer <token>`` to a request."""

    def __init__(self, token: str) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


class HttpxTransport:
    """httpx implementation of the Transport protocol.

    This class satisfies the Transport protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        transport = HttpxTransport.create(token="s3cret")

        body = await transport.get("http://localhost:8000/api/tasks/7")
        await transport.close()
        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        token: str | None = None,
        send_credentials: bool | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Client to send requests with. If None, one is created
                from settings on first use and owned by this transport.
            token: Bearer token sent when credentials are requested.
            send_credentials: Default for requests that leave
                ``with_credentials`` unset. Defaults to settings.
        """
        self._client = client
        self._owns_client = client is None
        self._auth = BearerAuth(token) if token else None
        self._send_credentials = settings.send_credentials if send_credentials is None else send_credentials

    @classmethod
    def create(
        cls,
        client: httpx.AsyncClient | None = None,
        token: str | None = None,
    ) -> "HttpxTransport":
        """Factory method to create HttpxTransport with defaults.

        Args:
            client: Optional preconfigured client.
            token: API token. If None, uses settings.

        Returns:
            Configured HttpxTransport
        """
        return cls(client=client, token=token or settings.api_token)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = get_http_client()
        return self._client

    async def get(self, url: str, options: RequestOptions | None = None) -> Any:
        return await self._request("GET", url, options=options)

    async def post(self, url: str, body: Any, options: RequestOptions | None = None) -> Any:
        return await self._request("POST", url, body=body, options=options)

    async def put(self, url: str, body: Any, options: RequestOptions | None = None) -> Any:
        return await self._request("PUT", url, body=body, options=options)

    async def delete(self, url: str, options: RequestOptions | None = None) -> Any:
        return await self._request("DELETE", url, options=options)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        body: Any = None,
        options: RequestOptions | None = None,
    ) -> Any:
        """Send a request and parse the response body.

        Raises:
            TransportError: On connection failures, non-2xx statuses and
                undecodable JSON bodies
        """
        options = options or RequestOptions()
        kwargs: dict[str, Any] = {
            "headers": self._headers(options),
            "params": options.params or None,
            "auth": self._auth_for(options),
        }
        if isinstance(body, (str, bytes)):
            kwargs["content"] = body
        elif body is not None:
            kwargs["json"] = body

        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"HTTP error {e.response.status_code}: {e.response.reason_phrase} for {method} {url}"
            )
            raise TransportError(
                f"HTTP {e.response.status_code}: {e.response.reason_phrase} for {method} {url}",
                status_code=e.response.status_code,
                url=url,
                method=method,
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"Request error for {method} {url}: {e}")
            raise TransportError(f"Request failed: {e}", url=url, method=method) from e

        return self._parse(response, options, method, url)

    def _headers(self, options: RequestOptions) -> list[tuple[str, str]]:
        """Flatten multi-valued headers into (name, value) pairs."""
        headers: list[tuple[str, str]] = []
        for name, value in options.headers.items():
            values = value if isinstance(value, list) else [value]
            headers.extend((name, v) for v in values)
        return headers

    def _auth_for(self, options: RequestOptions) -> Any:
        """Credentials for one request, None disables auth entirely."""
        send = self._send_credentials if options.with_credentials is None else options.with_credentials
        if not send:
            return None
        return self._auth or httpx.USE_CLIENT_DEFAULT

    @staticmethod
    def _parse(response: httpx.Response, options: RequestOptions, method: str, url: str) -> Any:
        """Parse a successful response according to ``response_type``."""
        if not response.content:
            return None
        if options.response_type == "text":
            return response.text
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Invalid JSON in response to {method} {url}")
            raise TransportError(
                "Invalid JSON response",
                status_code=response.status_code,
                url=url,
                method=method,
            ) from e

    async def close(self) -> None:
        """Close the async HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
