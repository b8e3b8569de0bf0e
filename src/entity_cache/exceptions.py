"""Exception hierarchy for entity-cache.

Exception Hierarchy:
    EntityCacheError (base)
    ├── TransportError
    ├── KeyDerivationError
    └── EntitySchemaError

Services never retry or wrap errors raised by the transport or by entity
factories; they reach the caller unchanged.
"""

from typing import Any


class EntityCacheError(Exception):
    """Base exception for all entity-cache errors."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or JSON serialization."""
        return {"error": str(self), "type": type(self).__name__}


class TransportError(EntityCacheError):
    """Raised when a network call fails or returns a non-success status.

    Attributes:
        status_code: HTTP status of the response, None when no response arrived
        url: The requested URL
        method: The HTTP method used
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
        method: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.method = method

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        if self.url:
            result["url"] = self.url
        if self.method:
            result["method"] = self.method
        return result


class KeyDerivationError(EntityCacheError, TypeError):
    """Raised when no cache key can be derived from path ids."""

    def __init__(self, path_ids: Any) -> None:
        super().__init__(
            f"Cannot derive a cache key from {path_ids!r}: expected an entity, "
            "a mapping with 'key' or 'id', or a scalar identifier"
        )
        self.path_ids = path_ids


class EntitySchemaError(EntityCacheError):
    """Raised when an entity class declares an invalid field schema."""
