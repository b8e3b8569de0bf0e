"""Field schema entry for entities."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Field:
    """One entry of an entity's declared schema.

    Attributes:
        name: Attribute name on the entity and key in the JSON payload
        parse: Transform applied to the incoming JSON value
        dump: Transform applied to the attribute value when writing JSON
        ignore_incoming: Keep the local value when a payload arrives.
            A ``parse`` transform still applies.
        write: Include the field in ``to_json()``
    """

    name: str
    parse: Callable[[Any], Any] | None = None
    dump: Callable[[Any], Any] | None = None
    ignore_incoming: bool = False
    write: bool = True
