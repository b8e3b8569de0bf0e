"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (httpx → another HTTP client, etc.)
- Wrapping a plain service in the caching decorator, or a fake in tests
- Clear separation of concerns

Usage:
    ```python
    from entity_cache.protocols import CrudService, Transport

    transport: Transport = HttpxTransport.create()
    service: CrudService[Task] = CachedEntityService(TaskService(transport))
    ```
"""

from .crud_service import CrudService, EntityFactory, Options
from .transport import Transport

__all__ = [
    "CrudService",
    "EntityFactory",
    "Options",
    "Transport",
]
