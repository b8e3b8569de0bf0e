"""Entity service for CRUD requests.

Turns an endpoint template plus path ids into a URL, issues the request
through the transport, and converts raw response bodies into entities.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar

from entity_cache.config import settings
from entity_cache.dto import RequestOptions
from entity_cache.entities import Entity
from entity_cache.protocols import Options, Transport
from entity_cache.repositories import HttpxTransport

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)

_PLACEHOLDER = re.compile(r":([\w-]+):")
_REPEATED_SLASHES = re.compile(r"/{2,}")


def path_params_from(path_ids: Any) -> dict[str, Any]:
    """Placeholder values for a ``path_ids`` argument.

    A bare ``int`` or ``str`` is shorthand for ``{"id": value}``.

    Raises:
        TypeError: If path_ids is not None, a scalar id, a mapping or an entity
    """
    if path_ids is None:
        return {}
    if isinstance(path_ids, Entity):
        return path_ids.path_params()
    if isinstance(path_ids, Mapping):
        return dict(path_ids)
    if isinstance(path_ids, (int, str)) and not isinstance(path_ids, bool):
        return {"id": path_ids}
    raise TypeError(f"Unsupported path ids: {path_ids!r}")


class EntityService(Generic[T]):
    """CRUD client for one entity type.

    Subclasses describe the resource:
    - ``endpoint_format``: template such as ``"tasks/:taskId:/comments/:id:"``.
      Use ``:id:`` for simple cases so ``get(1)`` works as ``get({"id": 1})``.
    - ``entity_name``: CamelCase type name, e.g. ``"TaskComment"``
    - ``entity_class``: the Entity subclass built from responses. Override
      ``create_instance_from`` / ``key_for_json`` for custom construction.

    Every operation is a coroutine: nothing is sent until it is awaited,
    and each await sends its own request.

    Example:
        ```python
        class TaskService(EntityService[Task]):
            endpoint_format = "tasks/:id:"
            entity_name = "Task"
            entity_class = Task

        service = TaskService(transport, api_url="https://example.com/api")
        task = await service.get(7)
        tasks = await service.query()
        ```
    """

    endpoint_format: ClassVar[str] = ""
    entity_name: ClassVar[str] = ""
    entity_class: ClassVar[type[Entity] | None] = None

    def __init__(self, transport: Transport, api_url: str | None = None) -> None:
        """Initialize the entity service.

        Args:
            transport: Network collaborator (required).
            api_url: Base URL prepended to every endpoint. Defaults to settings.
        """
        self._transport = transport
        self._api_url = (api_url or settings.api_url).rstrip("/")

    @classmethod
    def from_settings(
        cls,
        transport: Transport | None = None,
        api_url: str | None = None,
    ) -> "EntityService[T]":
        """Factory method to create the service with sensible defaults.

        Args:
            transport: Network collaborator. If None, an HttpxTransport is
                created from settings.
            api_url: Base URL. If None, uses settings.

        Returns:
            Configured service instance
        """
        return cls(transport=transport or HttpxTransport.create(), api_url=api_url)

    @property
    def server_key(self) -> str:
        """The entity name in snake_case, e.g. ``"TaskComment"`` -> ``"task_comment"``."""
        name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", self.entity_name)
        return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def transport(self) -> Transport:
        """Get the underlying transport (for testing)."""
        return self._transport

    def build_endpoint(self, template: str, params: Mapping[str, Any] | None = None) -> str:
        """Convert an endpoint template into a full URL.

        Each ``:name:`` placeholder is replaced by the string form of
        ``params[name]``, or removed when the value is missing or falsy.
        Slashes left over by removed segments are collapsed.

        Args:
            template: Endpoint template with placeholders
            params: Placeholder values

        Returns:
            The API base URL joined with the resolved path
        """
        params = params or {}

        def replace(match: re.Match[str]) -> str:
            value = params.get(match.group(1))
            return str(value) if value else ""

        path = _PLACEHOLDER.sub(replace, template)
        path = _REPEATED_SLASHES.sub("/", path).strip("/")
        return f"{self._api_url}/{path}"

    def create_instance_from(self, raw: Any, other: Any = None) -> T:
        """Convert a raw payload into an entity.

        Args:
            raw: The response body describing one entity
            other: Extra construction context passed through from the caller

        Returns:
            A new entity instance
        """
        if self.entity_class is None:
            raise NotImplementedError(
                f"{type(self).__name__} must set entity_class or override create_instance_from"
            )
        return self.entity_class(raw)  # type: ignore[return-value]

    def key_for_json(self, raw: Any) -> str:
        """Get the cache key of the entity described by a raw payload."""
        if self.entity_class is None:
            raise NotImplementedError(
                f"{type(self).__name__} must set entity_class or override key_for_json"
            )
        return str(raw[self.entity_class.key_field])

    def convert_collection(self, collection: list[Any], other: Any = None) -> list[T]:
        """Instantiate an entity for each raw element of a collection."""
        return [self.create_instance_from(raw, other) for raw in collection]

    async def get(self, path_ids: Any, other: Any = None, options: Options = None) -> T:
        """Make a get request for one entity.

        Args:
            path_ids: Either the id, mapped to ``:id:``, or a mapping/entity
                whose keys match the template placeholders
            other: Context passed to ``create_instance_from``
            options: Optional request options

        Returns:
            The entity built from the response
        """
        options = RequestOptions.coerce(options)
        url = self._url_for(path_ids, options)
        logger.debug(f"GET {url}")
        raw = await self._transport.get(url, self._transport_options(options))
        return self.create_instance_from(raw, other)

    async def query(self, path_ids: Any = None, other: Any = None, options: Options = None) -> list[T]:
        """Make a query request (get all) to the endpoint.

        A non-list body is treated as a single-element collection and an
        empty body as an empty one.

        Returns:
            The entities built from the response
        """
        options = RequestOptions.coerce(options)
        url = self._url_for(path_ids, options)
        logger.debug(f"GET (query) {url}")
        raw = await self._transport.get(url, self._transport_options(options))
        if raw is None:
            collection: list[Any] = []
        elif isinstance(raw, list):
            collection = raw
        else:
            collection = [raw]
        return self.convert_collection(collection, other)

    async def create(
        self,
        path_ids: Any = None,
        data: Any = None,
        other: Any = None,
        options: Options = None,
    ) -> T:
        """Make a create request to the endpoint.

        Args:
            path_ids: Mapping or entity whose keys match the placeholders
            data: Request body. Defaults to ``path_ids.to_json()`` when
                available, otherwise ``path_ids`` itself.
            other: Context passed to ``create_instance_from``
            options: Optional request options

        Returns:
            The newly created entity
        """
        options = RequestOptions.coerce(options)
        url = self._url_for(path_ids, options)
        logger.debug(f"POST {url}")
        raw = await self._transport.post(url, self._body(path_ids, data), self._transport_options(options))
        return self.create_instance_from(raw, other)

    async def put(self, path_ids: Any, data: Any = None, options: Options = None) -> Any:
        """Make a put request and return the raw response body.

        The body defaults the same way as in ``create``.
        """
        options = RequestOptions.coerce(options)
        url = self._url_for(path_ids, options)
        logger.debug(f"PUT {url}")
        return await self._transport.put(url, self._body(path_ids, data), self._transport_options(options))

    async def update(self, path_ids: Any, entity: T | None = None, options: Options = None) -> T:
        """Make an update request for an entity.

        The response is merged into the same instance, so every holder of
        a reference to it sees the server's values.

        Args:
            path_ids: Mapping or entity identifying the endpoint; also the
                entity to update when ``entity`` is omitted
            entity: The entity to send
            options: Optional request options

        Returns:
            The updated entity (the instance that was passed in)
        """
        if entity is None:
            entity = path_ids
        raw = await self.put(path_ids, entity.to_json(), options)
        if raw:
            entity.update_from_json(raw)
        return entity

    async def delete(self, path_ids: Any, options: Options = None) -> Any:
        """Make a delete request and return the raw response body."""
        options = RequestOptions.coerce(options)
        url = self._url_for(path_ids, options)
        logger.debug(f"DELETE {url}")
        return await self._transport.delete(url, self._transport_options(options))

    def _url_for(self, path_ids: Any, options: RequestOptions | None) -> str:
        template = self.endpoint_format
        if options is not None and options.alternate_endpoint_format:
            template = options.alternate_endpoint_format
        return self.build_endpoint(template, path_params_from(path_ids))

    @staticmethod
    def _transport_options(options: RequestOptions | None) -> RequestOptions | None:
        return options.for_transport() if options is not None else None

    @staticmethod
    def _body(path_ids: Any, data: Any) -> Any:
        if data is not None:
            return data
        to_json = getattr(path_ids, "to_json", None)
        return to_json() if callable(to_json) else path_ids
