"""Data Transfer Objects for request contracts.

These Pydantic models define the options callers pass through the
service layer to the transport. Entities live in the entities package.
"""

from .options import RequestOptions

__all__ = [
    "RequestOptions",
]
