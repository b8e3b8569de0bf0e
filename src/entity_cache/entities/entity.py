"""Base entity with a declared field schema."""

from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from entity_cache.entities.field import Field
from entity_cache.exceptions import EntitySchemaError


def _validate_schema(owner: str, fields: Iterable[Field | str]) -> tuple[Field, ...]:
    """Normalize and validate a schema declaration.

    Plain strings are accepted as shorthand for ``Field(name)``.
    """
    validated: list[Field] = []
    seen: set[str] = set()

    for entry in fields:
        if isinstance(entry, str):
            entry = Field(entry)
        if not isinstance(entry, Field):
            raise EntitySchemaError(f"{owner}: schema entries must be Field or str, got {entry!r}")
        if not entry.name.isidentifier():
            raise EntitySchemaError(f"{owner}: {entry.name!r} is not a valid field name")
        if entry.name in seen:
            raise EntitySchemaError(f"{owner}: duplicate field {entry.name!r}")
        if hasattr(Entity, entry.name):
            raise EntitySchemaError(f"{owner}: field {entry.name!r} shadows an Entity attribute")
        for transform in (entry.parse, entry.dump):
            if transform is not None and not callable(transform):
                raise EntitySchemaError(f"{owner}: transform for {entry.name!r} is not callable")
        seen.add(entry.name)
        validated.append(entry)

    return tuple(validated)


class Entity:
    """Domain object transferred to and from the server.

    Subclasses declare ``fields``; the schema is validated once when the
    subclass is created. ``key`` identifies the instance in a cache and
    defaults to the stringified ``key_field`` value.

    Example:
        ```python
        class Task(Entity):
            fields = (
                Field("id"),
                Field("name"),
                Field("due", parse=date.fromisoformat, dump=date.isoformat),
                Field("created_at", write=False),
            )

        task = Task({"id": 7, "name": "Write tests", "due": "2024-05-01"})
        task.key        # "7"
        task.to_json()  # {"id": 7, "name": "Write tests", "due": "2024-05-01"}
        ```
    """

    fields: ClassVar[tuple[Field, ...]] = ()
    key_field: ClassVar[str] = "id"

    # Fields set from a server payload at least once
    _received: frozenset[str] = frozenset()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.fields = _validate_schema(cls.__name__, cls.fields)

        names = {f.name for f in cls.fields}
        if cls.fields and cls.key is Entity.key and cls.key_field not in names:
            raise EntitySchemaError(
                f"{cls.__name__}: key_field {cls.key_field!r} is not a declared field"
            )

    def __init__(self, initial_data: Mapping[str, Any] | None = None) -> None:
        for f in self.fields:
            setattr(self, f.name, None)
        if initial_data:
            self.update_from_json(initial_data)

    @property
    def key(self) -> str | None:
        """Unique cache key, None while the entity has no identifier."""
        value = getattr(self, self.key_field, None)
        return None if value is None else str(value)

    def update_from_json(self, data: Mapping[str, Any]) -> None:
        """Merge a server payload into this instance.

        Only keys present in ``data`` are applied.
        """
        applied: set[str] = set()
        for f in self.fields:
            if f.name not in data:
                continue
            if f.parse is not None:
                setattr(self, f.name, f.parse(data[f.name]))
            elif not f.ignore_incoming:
                setattr(self, f.name, data[f.name])
            else:
                continue
            applied.add(f.name)
        self._received = self._received | applied

    def to_json(self) -> dict[str, Any]:
        """Serialize writable fields for a create or update request."""
        json: dict[str, Any] = {}
        for f in self.fields:
            if not f.write:
                continue
            value = getattr(self, f.name)
            json[f.name] = f.dump(value) if f.dump is not None else value
        return json

    def assign_from(self, other: "Entity") -> None:
        """Copy the fields another instance received from the server.

        Fields the other instance never received (absent from its payload,
        or ignored on the way in) keep their current value here.
        """
        for f in self.fields:
            if f.name in other._received:
                setattr(self, f.name, getattr(other, f.name))
        self._received = self._received | other._received

    def path_params(self) -> dict[str, Any]:
        """Field values used to fill endpoint placeholders."""
        return {f.name: getattr(self, f.name) for f in self.fields}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r})"
