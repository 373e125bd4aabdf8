# src/gremlinalchemy/orm/schema.py
from typing import Any, Dict, Iterator, List, Mapping, Optional

from gremlinalchemy.exceptions import SchemaError
from gremlinalchemy.orm.properties import Property, PropertyType, resolve_property_type


# Reserved discriminator binding a vertex to the model that created it
DISCRIMINATOR = "$type"
IDENTIFIER = "_id"
RESERVED_NAMES = frozenset({DISCRIMINATOR, IDENTIFIER})

_OPTION_KEYS = frozenset({"type", "indexed", "unique"})

DISCRIMINATOR_PROPERTY = Property(name=DISCRIMINATOR, type=PropertyType.STRING, indexed=True)


def _parse_definition(name: str, options: Any) -> Property:
    if not isinstance(name, str) or not name:
        raise SchemaError(f"Property names must be non-empty strings, got {name!r}")
    if name in RESERVED_NAMES:
        raise SchemaError(f"'{name}' is reserved and cannot be declared in a schema")
    if name.startswith("_") or not name.isidentifier():
        raise SchemaError(f"'{name}' is not a valid property name")

    # Bare type shorthand: {"name": str}
    if not isinstance(options, Mapping):
        return Property(name=name, type=resolve_property_type(options))

    unknown = set(options) - _OPTION_KEYS
    if unknown:
        raise SchemaError(f"Unknown options for property '{name}': {sorted(unknown)}")

    unique = bool(options.get("unique", False))
    if "type" not in options or options["type"] is None:
        if unique:
            raise SchemaError(f"Unique property '{name}' must declare an explicit type")
        property_type = PropertyType.STRING
    else:
        property_type = resolve_property_type(options["type"])

    return Property(
        name=name,
        type=property_type,
        indexed=bool(options.get("indexed", False)),
        unique=unique,
    )


class Schema:
    """
    Ordered set of Property descriptors built from a plain field -> options mapping.

    The discriminator property (`$type`) is always present first and always
    indexed.

    Example:
        ```python
        UserSchema = Schema({
            "name": str,
            "email": {"type": str, "unique": True},
            "age": {"type": "integer", "indexed": True},
        })
        ```
    """

    def __init__(self, definition: Optional[Mapping[str, Any]] = None, name: Optional[str] = None):
        if definition is not None and not isinstance(definition, Mapping):
            raise SchemaError("A schema definition must be a mapping of property names to options")

        self.name: Optional[str] = name.lower() if name else None
        self.discriminator = DISCRIMINATOR_PROPERTY

        properties: Dict[str, Property] = {DISCRIMINATOR: self.discriminator}
        for property_name, options in (definition or {}).items():
            properties[property_name] = _parse_definition(property_name, options)
        self._properties = properties

    @property
    def properties(self) -> Dict[str, Property]:
        """All properties including the discriminator, in declaration order."""
        return dict(self._properties)

    @property
    def declared_properties(self) -> Dict[str, Property]:
        """Properties declared by the application."""
        return {name: prop for name, prop in self._properties.items() if name != DISCRIMINATOR}

    def indexable_properties(self) -> List[Property]:
        return [prop for prop in self._properties.values() if prop.is_indexable()]

    def get_property(self, name: str) -> Optional[Property]:
        return self._properties.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._properties

    def __iter__(self) -> Iterator[Property]:
        return iter(self._properties.values())

    def __len__(self) -> int:
        return len(self._properties)

    def __repr__(self) -> str:
        label = f"'{self.name}', " if self.name else ""
        return f"Schema({label}{list(self.declared_properties)})"
