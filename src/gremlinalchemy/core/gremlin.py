# src/gremlinalchemy/core/gremlin.py
"""
Gremlin-Groovy query descriptors and the scripts the ORM issues.

Every value (property keys included) travels as a binding; only the fixed
script skeletons below are ever sent as text.
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GremlinQuery(BaseModel):
    """A Gremlin script together with its parameter bindings."""

    script: str = Field(..., min_length=1, description="Gremlin-Groovy script text")
    bindings: Dict[str, Any] = Field(default_factory=dict, description="Script parameter bindings")

    model_config = ConfigDict(frozen=True)

    @field_validator("script")
    @classmethod
    def validate_script(cls, v):
        if not v.strip():
            raise ValueError("Gremlin script cannot be empty")
        return v

    @classmethod
    def coerce(
        cls,
        query: Union["GremlinQuery", str],
        bindings: Optional[Mapping[str, Any]] = None,
    ) -> "GremlinQuery":
        """Build a query from a raw script, or extend an existing query's bindings."""
        if isinstance(query, GremlinQuery):
            if not bindings:
                return query
            return cls(script=query.script, bindings={**query.bindings, **bindings})
        return cls(script=query, bindings=dict(bindings or {}))


# (property key, value, vertex method used to attach it)
PropertyWrite = Tuple[str, Any, str]

COMMIT = "g.commit()"


def _lines(*lines: Optional[str]) -> str:
    return "\n".join(line for line in lines if line)


def add_vertex_query(writes: Sequence[PropertyWrite], commit: bool = True) -> GremlinQuery:
    """
    Create a vertex and attach each property through its own pathway.

    Args:
        writes: (key, value, step) triples; step is `addProperty` or `setProperty`
        commit: Whether the backend needs an explicit transaction commit
    """
    bindings: Dict[str, Any] = {}
    statements: List[str] = ["v = g.addVertex()"]

    for position, (key, value, step) in enumerate(writes):
        key_binding, value_binding = f"key_{position}", f"value_{position}"
        bindings[key_binding] = key
        bindings[value_binding] = value
        statements.append(f"v.{step}({key_binding}, {value_binding})")

    return GremlinQuery(
        script=_lines(*statements, COMMIT if commit else None, "v"),
        bindings=bindings,
    )


def update_vertex_query(vertex_id: Any, properties: Mapping[str, Any], commit: bool = True) -> GremlinQuery:
    """
    Overwrite properties of an existing vertex; null values remove the property.

    The script evaluates to null when no vertex has the given identifier.
    """
    script = _lines(
        "v = g.v(vertex_id)",
        "if (v != null) {",
        "  properties.each { key, value -> value == null ? v.removeProperty(key) : v.setProperty(key, value) }",
        f"  {COMMIT}" if commit else None,
        "}",
        "v",
    )
    return GremlinQuery(script=script, bindings={"vertex_id": vertex_id, "properties": dict(properties)})


def vertex_by_id_query(vertex_id: Any) -> GremlinQuery:
    return GremlinQuery(script="g.v(vertex_id)", bindings={"vertex_id": vertex_id})


def vertices_by_key_value_query(key: str, value: Any, discriminator: str, model_name: str) -> GremlinQuery:
    """Vertices with `key == value` that belong to the given model."""
    return GremlinQuery(
        script="g.V(key, value).has(type_key, type_value)",
        bindings={"key": key, "value": value, "type_key": discriminator, "type_value": model_name},
    )


def add_edge_query(
    out_id: Any,
    in_id: Any,
    label: str,
    properties: Mapping[str, Any],
    commit: bool = True,
) -> GremlinQuery:
    """Create a labeled edge between two existing vertices."""
    script = _lines(
        "e = g.addEdge(g.v(out_id), g.v(in_id), label, properties)",
        COMMIT if commit else None,
        "e",
    )
    return GremlinQuery(
        script=script,
        bindings={"out_id": out_id, "in_id": in_id, "label": label, "properties": dict(properties)},
    )


def indexed_keys_query() -> GremlinQuery:
    """Names of every key indexed at vertex scope."""
    return GremlinQuery(script="g.getIndexedKeys(Vertex.class)")
