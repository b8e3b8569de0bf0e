"""Caching decorator for entity services.

Wraps any CrudService and keeps previously fetched entities in an
in-memory store. Cached instances are refreshed in place when newer data
arrives, so every holder of a reference stays current.
"""

import logging
from collections.abc import Awaitable, Iterator, Mapping, MutableMapping
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from entity_cache.entities import Entity
from entity_cache.exceptions import KeyDerivationError
from entity_cache.models import CacheMetrics
from entity_cache.protocols import CrudService, EntityFactory, Options

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)

CacheStore = MutableMapping[str, T]


def key_from_path_ids(path_ids: Any) -> str:
    """Map path ids to the key of the entity they identify.

    Resolution order:
    1. An entity's own ``key``
    2. The ``"key"`` entry of a mapping
    3. The ``"id"`` entry of a mapping
    4. A bare ``int`` or non-empty ``str`` identifier

    Raises:
        KeyDerivationError: If none of the above applies
    """
    if isinstance(path_ids, Entity):
        key = path_ids.key
        if key is not None:
            return key
    elif isinstance(path_ids, Mapping):
        for name in ("key", "id"):
            value = path_ids.get(name)
            if value is not None:
                return str(value)
    elif isinstance(path_ids, int) and not isinstance(path_ids, bool):
        return str(path_ids)
    elif isinstance(path_ids, str) and path_ids:
        return path_ids
    raise KeyDerivationError(path_ids)


class CachedEntityService(Generic[T]):
    """Entity service with an in-memory entity cache.

    Composes a CrudService (usually an EntityService) and decorates each
    operation:
    - get: answered from the cache when possible, cached otherwise
    - fetch: always requested, merged into the cached instance if any
    - query/create/update: results cached under their own keys
    - delete: entry removed once the server confirms

    Keys and the active store are resolved when an operation is called
    (bad path ids raise immediately); the request runs when the returned
    awaitable is awaited, and its results land in the store that was
    active at call time. The cache is only touched after a successful
    request.

    Example:
        ```python
        tasks = CachedEntityService(TaskService(transport))

        task = await tasks.get(7)         # network
        same = await tasks.get(7)         # cache, same instance
        await tasks.fetch(7)              # network, refreshes `task` in place

        comments = CachedEntityService(CommentService(transport))
        with comments.using_cache(task.comments):
            await comments.query({"taskId": 7})   # cached in task.comments only
        ```
    """

    key_from_path_ids = staticmethod(key_from_path_ids)

    def __init__(self, service: CrudService[T]) -> None:
        """Initialize the cached service.

        Args:
            service: The service performing the requests (required).
        """
        self._service = service
        self._global_cache: dict[str, T] = {}
        self._cache: CacheStore = self._global_cache
        self._metrics = CacheMetrics()

    @property
    def service(self) -> CrudService[T]:
        """Get the wrapped service."""
        return self._service

    @property
    def entity_name(self) -> str:
        return self._service.entity_name

    @property
    def global_cache(self) -> dict[str, T]:
        """The process-wide default store."""
        return self._global_cache

    @property
    def cache_source(self) -> CacheStore:
        """The store currently used for lookups and writes."""
        return self._cache

    @cache_source.setter
    def cache_source(self, source: CacheStore | None) -> None:
        """Switch the active store.

        The store may be owned by another entity (for example the comments
        of one task). None reverts to the global store. Nothing is copied
        between stores.
        """
        self._cache = self._global_cache if source is None else source

    @contextmanager
    def using_cache(self, source: CacheStore | None) -> Iterator[CacheStore]:
        """Use ``source`` as the active store within a ``with`` block."""
        previous = self._cache
        self.cache_source = source
        try:
            yield self._cache
        finally:
            self._cache = previous

    @property
    def metrics(self) -> CacheMetrics:
        return self._metrics

    def get(self, path_ids: Any, other: Any = None, options: Options = None) -> Awaitable[T]:
        """Get an entity from the cache, requesting it on a miss.

        Args:
            path_ids: Either the id, mapped to ``:id:``, or a mapping/entity
                whose keys match the template placeholders
            other: Context passed to entity construction
            options: Optional request options

        Raises:
            KeyDerivationError: If no key can be derived from path_ids
        """
        key = key_from_path_ids(path_ids)
        return self._get(self._cache, key, path_ids, other, options)

    async def _get(self, store: CacheStore, key: str, path_ids: Any, other: Any, options: Options) -> T:
        cached = store.get(key)
        if cached is not None:
            self._metrics.record_hit()
            logger.debug(f"Cache hit: {self.entity_name} {key}")
            return cached

        self._metrics.record_miss()
        logger.debug(f"Cache miss: {self.entity_name} {key}")
        entity = await self._service.get(path_ids, other, options)
        self._store(store, entity, requested_key=key)
        return entity

    def fetch(self, path_ids: Any, other: Any = None, options: Options = None) -> Awaitable[T]:
        """Request an entity even if it is cached.

        When the entity is already cached the fields received in the fresh
        response are copied onto the cached instance, which is returned;
        otherwise the new instance is cached under the key derived from
        ``path_ids``.

        Raises:
            KeyDerivationError: If no key can be derived from path_ids
        """
        key = key_from_path_ids(path_ids)
        return self._fetch(self._cache, key, path_ids, other, options)

    async def _fetch(self, store: CacheStore, key: str, path_ids: Any, other: Any, options: Options) -> T:
        entity = await self._service.get(path_ids, other, options)
        cached = store.get(key)
        if cached is not None:
            cached.assign_from(entity)
            self._metrics.record_refresh()
            logger.debug(f"Refreshed cached {self.entity_name} {key}")
            return cached

        # Stored under the requested key so the next fetch finds this instance
        store[key] = entity
        self._metrics.record_insert()
        logger.debug(f"Cached {self.entity_name} {key}")
        return entity

    def query(self, path_ids: Any = None, other: Any = None, options: Options = None) -> Awaitable[list[T]]:
        """Query the endpoint and cache every returned entity.

        Cached entries with the same keys are replaced.
        """
        return self._query(self._cache, path_ids, other, options)

    async def _query(self, store: CacheStore, path_ids: Any, other: Any, options: Options) -> list[T]:
        entities = await self._service.query(path_ids, other, options)
        for entity in entities:
            self._store(store, entity)
        return entities

    def create(
        self,
        path_ids: Any = None,
        data: Any = None,
        other: Any = None,
        options: Options = None,
    ) -> Awaitable[T]:
        """Create an entity and cache the server's version of it."""
        return self._create(self._cache, path_ids, data, other, options)

    async def _create(self, store: CacheStore, path_ids: Any, data: Any, other: Any, options: Options) -> T:
        entity = await self._service.create(path_ids, data, other, options)
        self._store(store, entity)
        return entity

    def update(self, path_ids: Any, entity: T | None = None, options: Options = None) -> Awaitable[T]:
        """Update an entity and cache the result under its key."""
        return self._update(self._cache, path_ids, entity, options)

    async def _update(self, store: CacheStore, path_ids: Any, entity: T | None, options: Options) -> T:
        updated = await self._service.update(path_ids, entity, options)
        self._store(store, updated)
        return updated

    def delete(self, path_ids: Any, options: Options = None) -> Awaitable[Any]:
        """Delete an entity, removing it from the cache once deleted.

        Raises:
            KeyDerivationError: If no key can be derived from path_ids
        """
        key = key_from_path_ids(path_ids)
        return self._delete(self._cache, key, path_ids, options)

    async def _delete(self, store: CacheStore, key: str, path_ids: Any, options: Options) -> Any:
        response = await self._service.delete(path_ids, options)
        if key in store:
            del store[key]
            self._metrics.record_removal()
            logger.debug(f"Removed {self.entity_name} {key} from cache")
        return response

    def has_entity_in_cache(self, key: str) -> bool:
        """Check if an entity exists for a given key within the current cache."""
        return key in self._cache

    def add_entity_to_cache(self, key: str, entity: T) -> None:
        """Store an entity in the current cache without a request."""
        self._cache[key] = entity
        self._metrics.record_insert()

    def get_from_cache(self, key: str) -> T | None:
        """Read an entity from the current cache without a request."""
        return self._cache.get(key)

    def cache_from_json(self, raw: Mapping[str, Any], other: Any = None) -> T:
        """Cache an entity from a raw payload received outside a request.

        An already cached instance is updated in place; otherwise a new
        instance is built and cached.

        Raises:
            TypeError: If the wrapped service cannot build entities
        """
        if not isinstance(self._service, EntityFactory):
            raise TypeError(f"{type(self._service).__name__} does not implement EntityFactory")

        key = self._service.key_for_json(raw)
        cached = self._cache.get(key)
        if cached is not None:
            cached.update_from_json(raw)
            self._metrics.record_refresh()
            return cached

        entity = self._service.create_instance_from(raw, other)
        self.add_entity_to_cache(key, entity)
        return entity

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        stats: dict[str, Any] = dict(self._metrics.to_dict())
        stats["entity_name"] = self.entity_name
        stats["cached_entries"] = len(self._cache)
        stats["global_entries"] = len(self._global_cache)
        stats["using_global_cache"] = self._cache is self._global_cache
        return stats

    def _store(self, store: CacheStore, entity: T, requested_key: str | None = None) -> None:
        """Cache an entity under its own key."""
        key = entity.key
        if key is None:
            logger.warning(f"{self.entity_name} returned without a key, not cached")
            return
        if requested_key is not None and requested_key != key:
            logger.warning(f"Requested {self.entity_name} {requested_key} but received key {key}")
        store[key] = entity
        self._metrics.record_insert()
