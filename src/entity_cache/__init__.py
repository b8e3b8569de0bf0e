"""Entity Cache - typed REST entities with an in-memory identity cache.

This package maps domain objects onto CRUD endpoints and keeps fetched
entities cached so repeated reads skip the network and every call site
shares the same instance.

Layers:
    - protocols: Interface contracts (Transport, CrudService, EntityFactory)
    - repositories: Network access (HttpxTransport)
    - services: EntityService (CRUD) and CachedEntityService (cache policy)
    - dto: Request options
    - entities: Entity base class and field schema

Usage:
    ```python
    from entity_cache import CachedEntityService, Entity, EntityService, Field

    class Task(Entity):
        fields = (Field("id"), Field("name"))

    class TaskService(EntityService[Task]):
        endpoint_format = "tasks/:id:"
        entity_name = "Task"
        entity_class = Task

    tasks = CachedEntityService(TaskService.from_settings())
    task = await tasks.get(7)
    ```
"""

import logging

from entity_cache.config import get_http_client, settings
from entity_cache.dto import RequestOptions
from entity_cache.entities import Entity, Field
from entity_cache.exceptions import (
    EntityCacheError,
    EntitySchemaError,
    KeyDerivationError,
    TransportError,
)
from entity_cache.models import CacheMetrics
from entity_cache.protocols import CrudService, EntityFactory, Transport
from entity_cache.repositories import HttpxTransport
from entity_cache.services import CachedEntityService, EntityService, key_from_path_ids

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Configuration
    "settings",
    "get_http_client",
    # Protocols (interfaces)
    "CrudService",
    "EntityFactory",
    "Transport",
    # Services
    "CachedEntityService",
    "EntityService",
    "key_from_path_ids",
    # Repositories (network)
    "HttpxTransport",
    # Entities
    "Entity",
    "Field",
    # DTOs
    "RequestOptions",
    # Metrics
    "CacheMetrics",
    # Errors
    "EntityCacheError",
    "EntitySchemaError",
    "KeyDerivationError",
    "TransportError",
]
