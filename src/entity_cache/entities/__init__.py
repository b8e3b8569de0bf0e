"""Domain entities.

Entities are mutable: cached instances are refreshed in place so every
holder of a reference sees server updates. Each subclass declares its
JSON schema as an ordered tuple of ``Field`` entries.
"""

from .entity import Entity
from .field import Field

__all__ = ["Entity", "Field"]
