# src/gremlinalchemy/orm/properties.py
"""
GremlinAlchemy property descriptors.

A Property describes one schema field: its type from a small closed set, the
indexed/unique flags and the backend data type token derived from the type.
"""
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gremlinalchemy.exceptions import SchemaError


class PropertyType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


# Titan type tokens; dates travel as ISO-8601 strings
DATA_TYPES: Dict[PropertyType, str] = {
    PropertyType.STRING: "String.class",
    PropertyType.INTEGER: "Integer.class",
    PropertyType.NUMBER: "Double.class",
    PropertyType.BOOLEAN: "Boolean.class",
    PropertyType.DATE: "String.class",
}

PYTHON_TYPES: Dict[PropertyType, Type] = {
    PropertyType.STRING: str,
    PropertyType.INTEGER: int,
    PropertyType.NUMBER: float,
    PropertyType.BOOLEAN: bool,
    PropertyType.DATE: datetime,
}

# bool before int: bool is a subclass of int
_FROM_PYTHON = (
    (bool, PropertyType.BOOLEAN),
    (str, PropertyType.STRING),
    (int, PropertyType.INTEGER),
    (float, PropertyType.NUMBER),
    (datetime, PropertyType.DATE),
    (date, PropertyType.DATE),
)


def resolve_property_type(value: Union[PropertyType, str, Type]) -> PropertyType:
    """
    Map a declared type (Python type or type name) onto the closed set.

    Raises:
        SchemaError: If the type is not supported.
    """
    if isinstance(value, PropertyType):
        return value

    if isinstance(value, str):
        try:
            return PropertyType(value.lower())
        except ValueError:
            raise SchemaError(f"Unsupported property type '{value}'") from None

    if isinstance(value, type):
        for python_type, property_type in _FROM_PYTHON:
            if value is python_type:
                return property_type

    raise SchemaError(f"Unsupported property type {value!r}")


class Property(BaseModel):
    """
    Immutable description of one schema field.

    `unique` implies `indexed`; a property declared unique is always indexed.
    """

    name: str = Field(..., min_length=1, description="Property name, unique within a schema")
    type: PropertyType = Field(default=PropertyType.STRING, description="Declared value type")
    indexed: bool = Field(default=False, description="Whether the backend indexes this key")
    unique: bool = Field(default=False, description="Whether values must be unique across vertices")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def unique_implies_indexed(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("unique"):
            data = {**data, "indexed": True}
        return data

    @property
    def data_type(self) -> str:
        """Backend type token for this property."""
        return DATA_TYPES[self.type]

    @property
    def python_type(self) -> Type:
        return PYTHON_TYPES[self.type]

    def is_indexable(self) -> bool:
        return self.indexed or self.unique

    def to_backend(self, value: Any) -> Any:
        """Convert a Python value to what the backend stores."""
        if value is None:
            return None
        if self.type is PropertyType.DATE and isinstance(value, (datetime, date)):
            return value.isoformat()
        return value

    def __repr__(self) -> str:
        flags = [flag for flag in ("indexed", "unique") if getattr(self, flag)]
        suffix = f", {', '.join(flags)}" if flags else ""
        return f"Property({self.name!r}, {self.type.value}{suffix})"
