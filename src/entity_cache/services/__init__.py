"""Service layer for entity access.

Architecture:
    CachedEntityService -> EntityService -> Transport
    (cache policy)      -> (CRUD/URLs)   -> (network)

Usage:
    ```python
    from entity_cache.services import CachedEntityService

    tasks = CachedEntityService(TaskService.from_settings())
    task = await tasks.get(7)
    ```
"""

from .cached_entity_service import CachedEntityService, key_from_path_ids
from .entity_service import EntityService, path_params_from

__all__ = [
    "CachedEntityService",
    "EntityService",
    "key_from_path_ids",
    "path_params_from",
]
