# tests/core/test_gremlin.py
import pytest
from pydantic import ValidationError

from gremlinalchemy.core.gremlin import (
    GremlinQuery,
    add_edge_query,
    add_vertex_query,
    indexed_keys_query,
    update_vertex_query,
    vertex_by_id_query,
    vertices_by_key_value_query,
)


class TestGremlinQuery:
    def test_coerce_string(self):
        query = GremlinQuery.coerce("g.V()", {"x": 1})
        assert query.script == "g.V()"
        assert query.bindings == {"x": 1}

    def test_coerce_query_merges_bindings(self):
        base = GremlinQuery(script="g.v(id)", bindings={"id": 1})
        assert GremlinQuery.coerce(base) is base

        merged = GremlinQuery.coerce(base, {"extra": True})
        assert merged.bindings == {"id": 1, "extra": True}

    def test_blank_script_rejected(self):
        with pytest.raises(ValidationError):
            GremlinQuery(script="   ")


class TestScriptBuilders:
    def test_add_vertex_uses_each_pathway(self):
        query = add_vertex_query(
            [("$type", "user", "addProperty"), ("bio", "rich", "setProperty")],
            commit=True,
        )

        lines = query.script.splitlines()
        assert lines[0] == "v = g.addVertex()"
        assert "v.addProperty(key_0, value_0)" in lines
        assert "v.setProperty(key_1, value_1)" in lines
        assert lines[-2:] == ["g.commit()", "v"]
        assert query.bindings == {"key_0": "$type", "value_0": "user", "key_1": "bio", "value_1": "rich"}

    def test_add_vertex_without_commit(self):
        query = add_vertex_query([("name", "Alice", "setProperty")], commit=False)
        assert "g.commit()" not in query.script

    def test_update_binds_values(self):
        query = update_vertex_query(5, {"name": "Bruce", "age": None})

        assert query.bindings == {"vertex_id": 5, "properties": {"name": "Bruce", "age": None}}
        assert "removeProperty" in query.script
        assert query.script.splitlines()[-1] == "v"

    def test_lookups(self):
        assert vertex_by_id_query(3).bindings == {"vertex_id": 3}

        query = vertices_by_key_value_query("name", "Bob", "$type", "user")
        assert query.bindings == {"key": "name", "value": "Bob", "type_key": "$type", "type_value": "user"}

        assert indexed_keys_query().script == "g.getIndexedKeys(Vertex.class)"

    def test_add_edge(self):
        query = add_edge_query(1, 2, "follows", {"foo": "bar"}, commit=False)

        assert query.script.startswith("e = g.addEdge(g.v(out_id), g.v(in_id), label, properties)")
        assert query.bindings == {"out_id": 1, "in_id": 2, "label": "follows", "properties": {"foo": "bar"}}
