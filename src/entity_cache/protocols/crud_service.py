"""CRUD service and entity factory protocols.

``CrudService`` is the capability set shared by the plain entity service
and the caching decorator, so the decorator can wrap either one (or a
test double) without inheriting from it.
"""

from collections.abc import Awaitable, Mapping
from typing import Any, Protocol, TypeVar, runtime_checkable

from entity_cache.dto import RequestOptions
from entity_cache.entities import Entity

T = TypeVar("T", bound=Entity)

Options = RequestOptions | Mapping[str, Any] | None


@runtime_checkable
class CrudService(Protocol[T]):
    """Protocol for services exposing the five CRUD operations.

    Each operation returns an awaitable; no request is made until it is
    awaited.
    """

    @property
    def entity_name(self) -> str:
        """Human readable entity type name (e.g. "TaskComment")."""
        ...

    def get(self, path_ids: Any, other: Any = None, options: Options = None) -> Awaitable[T]:
        """Read one entity."""
        ...

    def query(self, path_ids: Any = None, other: Any = None, options: Options = None) -> Awaitable[list[T]]:
        """Read a collection of entities."""
        ...

    def create(
        self,
        path_ids: Any = None,
        data: Any = None,
        other: Any = None,
        options: Options = None,
    ) -> Awaitable[T]:
        """Create an entity and return the server's version of it."""
        ...

    def update(self, path_ids: Any, entity: T | None = None, options: Options = None) -> Awaitable[T]:
        """Replace an entity, refreshing the given instance in place."""
        ...

    def delete(self, path_ids: Any, options: Options = None) -> Awaitable[Any]:
        """Delete an entity and return the raw response body."""
        ...


@runtime_checkable
class EntityFactory(Protocol[T]):
    """Protocol for building entities from raw payloads."""

    def create_instance_from(self, raw: Any, other: Any = None) -> T:
        """Build a typed entity from a raw payload."""
        ...

    def key_for_json(self, raw: Any) -> str:
        """Cache key of the entity a raw payload describes."""
        ...
