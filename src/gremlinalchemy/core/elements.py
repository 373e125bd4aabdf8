# src/gremlinalchemy/core/elements.py
"""
Graph elements as returned by the backend.

Rexster answers with GraphSON maps where element metadata lives under
underscore-prefixed keys (`_id`, `_type`, `_label`, `_outV`, `_inV`) next to
the element's own properties. A custom `Connection` may instead hand back
element objects carrying `id`, `label`, `outV`/`inV` and a list of
properties. Both shapes are decoded here into immutable Pydantic value
objects.
"""
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


ElementId = Union[int, str]

# Keys Rexster uses for element metadata; never treated as properties
GRAPHSON_RESERVED_KEYS = frozenset({"_id", "_type", "_label", "_outV", "_inV", "_properties"})


def _structure_properties(element: Any) -> Dict[str, Any]:
    """Collect properties from an element object."""
    properties: Dict[str, Any] = {}
    for prop in getattr(element, "properties", None) or []:
        key = getattr(prop, "key", None) or getattr(prop, "label", None)
        if key is not None:
            properties[key] = prop.value
    return properties


class Vertex(BaseModel):
    """
    A vertex read back from the backend.
    """

    id: ElementId = Field(..., description="Backend-assigned vertex identifier")
    label: Optional[str] = Field(default=None, description="Vertex label, when the backend has one")
    properties: Dict[str, Any] = Field(
        default_factory=dict,
        description="Vertex properties",
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": 4,
                "properties": {
                    "$type": "user",
                    "name": "Batman",
                },
            }
        },
    )

    @field_validator("properties", mode="before")
    @classmethod
    def validate_properties(cls, v):
        """Ensure all property keys are strings."""
        if v is None:
            return {}
        if not all(isinstance(k, str) for k in v.keys()):
            raise ValueError("All property keys must be strings")
        return v

    @classmethod
    def from_backend(cls, element: Any) -> "Vertex":
        """
        Decode a raw backend element.

        Args:
            element: A GraphSON map or a vertex object

        Returns:
            Vertex value object
        """
        if isinstance(element, Mapping):
            properties = {k: v for k, v in element.items() if k not in GRAPHSON_RESERVED_KEYS}
            nested = element.get("_properties")
            if isinstance(nested, Mapping):
                properties.update(nested)
            return cls(id=element["_id"], label=element.get("_label"), properties=properties)

        return cls(
            id=element.id,
            label=getattr(element, "label", None),
            properties=_structure_properties(element),
        )

    def get_property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    def has_property(self, key: str) -> bool:
        return key in self.properties


class Edge(BaseModel):
    """
    A directed, labeled edge read back from the backend.
    """

    id: Optional[ElementId] = Field(default=None, description="Backend-assigned edge identifier")
    out_v: ElementId = Field(..., description="Source vertex identifier")
    in_v: ElementId = Field(..., description="Target vertex identifier")
    label: str = Field(..., min_length=1, description="Edge label")
    properties: Dict[str, Any] = Field(
        default_factory=dict,
        description="Edge properties",
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "1b-4-2f",
                "out_v": 4,
                "in_v": 8,
                "label": "follows",
                "properties": {"foo": "bar"},
            }
        },
    )

    @field_validator("label")
    @classmethod
    def validate_label(cls, v):
        """Ensure label is not empty after stripping."""
        if not v or not v.strip():
            raise ValueError("Edge label cannot be empty")
        return v.strip()

    @classmethod
    def from_backend(cls, element: Any) -> "Edge":
        """
        Decode a raw backend element.

        Args:
            element: A GraphSON map or an edge object

        Returns:
            Edge value object
        """
        if isinstance(element, Mapping):
            properties = {k: v for k, v in element.items() if k not in GRAPHSON_RESERVED_KEYS}
            nested = element.get("_properties")
            if isinstance(nested, Mapping):
                properties.update(nested)
            return cls(
                id=element.get("_id"),
                out_v=element["_outV"],
                in_v=element["_inV"],
                label=element["_label"],
                properties=properties,
            )

        out_v = element.outV
        in_v = element.inV
        return cls(
            id=element.id,
            out_v=getattr(out_v, "id", out_v),
            in_v=getattr(in_v, "id", in_v),
            label=element.label,
            properties=_structure_properties(element),
        )

    def get_property(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)

    @property
    def is_self_loop(self) -> bool:
        """Check if edge is a self-loop."""
        return self.out_v == self.in_v
