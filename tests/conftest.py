# tests/conftest.py
"""
Shared fixtures: an in-memory Gremlin backend standing in for Titan/Rexster,
and a recording connection that routes scripts to it.
"""
import inspect
import itertools
from typing import Any, Callable, Dict, List, Optional, Set

import pytest
import pytest_asyncio

from gremlinalchemy.core.connection import Connection
from gremlinalchemy.core.gremlin import GremlinQuery
from gremlinalchemy.exceptions import BackendError
from gremlinalchemy.mapper import Mapper
from gremlinalchemy.settings import ConnectionSettings


class InMemoryGremlinBackend:
    """
    Answers the scripts the mapper issues, keeping vertices and edges as
    Rexster-style GraphSON maps.
    """

    def __init__(self, indexed_keys: Optional[Set[str]] = None):
        self.indexed_keys: Set[str] = set(indexed_keys or ())
        self.vertices: Dict[str, Dict[str, Any]] = {}
        self.edges: List[Dict[str, Any]] = []
        self.fail_keys: Set[str] = set()
        self.created_keys: List[str] = []
        self._ids = itertools.count(1)

    def _vertex(self, vertex_id: Any) -> Optional[Dict[str, Any]]:
        return self.vertices.get(str(vertex_id))

    def __call__(self, query: GremlinQuery) -> List[Any]:
        script, bindings = query.script, query.bindings

        if "getIndexedKeys" in script:
            return sorted(self.indexed_keys)

        if "makeKey" in script or "createKeyIndex" in script:
            key_name = bindings["key_name"]
            if key_name in self.fail_keys:
                raise BackendError(f"Could not create key '{key_name}'")
            self.indexed_keys.add(key_name)
            self.created_keys.append(key_name)
            return []

        if script.startswith("v = g.addVertex()"):
            vertex_id = str(next(self._ids))
            vertex = {"_id": vertex_id, "_type": "vertex"}
            position = 0
            while f"key_{position}" in bindings:
                vertex[bindings[f"key_{position}"]] = bindings[f"value_{position}"]
                position += 1
            self.vertices[vertex_id] = vertex
            return [dict(vertex)]

        if "properties.each" in script:
            vertex = self._vertex(bindings["vertex_id"])
            if vertex is None:
                return [None]
            for key, value in bindings["properties"].items():
                if value is None:
                    vertex.pop(key, None)
                else:
                    vertex[key] = value
            return [dict(vertex)]

        if "g.addEdge" in script:
            edge = {
                "_id": f"e{len(self.edges) + 1}",
                "_type": "edge",
                "_outV": bindings["out_id"],
                "_inV": bindings["in_id"],
                "_label": bindings["label"],
                **bindings["properties"],
            }
            self.edges.append(edge)
            return [dict(edge)]

        if script == "g.v(vertex_id)":
            vertex = self._vertex(bindings["vertex_id"])
            return [dict(vertex)] if vertex else []

        if script.startswith("g.V(key, value)"):
            return [
                dict(vertex)
                for vertex in self.vertices.values()
                if vertex.get(bindings["key"]) == bindings["value"]
                and vertex.get(bindings["type_key"]) == bindings["type_value"]
            ]

        if script == "g.V()":
            return [dict(vertex) for vertex in self.vertices.values()]

        raise BackendError(f"Unsupported script: {script}")


class FakeConnection(Connection):
    """Connection recording every query and delegating answers to a responder."""

    def __init__(
        self,
        settings: Optional[ConnectionSettings] = None,
        responder: Optional[Callable[[GremlinQuery], Any]] = None,
    ):
        self.settings = settings or ConnectionSettings()
        self.responder = responder or (lambda query: [])
        self.queries: List[GremlinQuery] = []
        self.open_calls = 0
        self.close_calls = 0
        self._is_connected = False

    async def open(self) -> None:
        self.open_calls += 1
        self._is_connected = True

    async def execute_query(self, query: GremlinQuery) -> List[Any]:
        self.queries.append(query)
        result = self.responder(query)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def close(self) -> None:
        self.close_calls += 1
        self._is_connected = False

    @property
    def connected(self) -> bool:
        return self._is_connected

    def scripts_containing(self, fragment: str) -> List[GremlinQuery]:
        return [query for query in self.queries if fragment in query.script]


class RecordingConnectionFactory:
    """Connection factory handing out a fresh FakeConnection on every call."""

    def __init__(self, responder: Callable[[GremlinQuery], Any]):
        self.responder = responder
        self.made: List[FakeConnection] = []

    def __call__(self, settings: ConnectionSettings) -> FakeConnection:
        connection = FakeConnection(settings, responder=self.responder)
        self.made.append(connection)
        return connection


TEST_SETTINGS = {"host": "mockgremlinhost", "port": 8182, "graph": "graph", "client": "titan"}


@pytest.fixture
def backend() -> InMemoryGremlinBackend:
    return InMemoryGremlinBackend()


@pytest.fixture
def connection(backend: InMemoryGremlinBackend) -> FakeConnection:
    return FakeConnection(responder=backend)


@pytest.fixture
def mapper(connection: FakeConnection) -> Mapper:
    """Unconnected mapper whose connection factory hands out the fake connection."""

    def factory(settings: ConnectionSettings) -> FakeConnection:
        connection.settings = settings
        return connection

    return Mapper(connection_factory=factory)


@pytest_asyncio.fixture
async def connected_mapper(mapper: Mapper, connection: FakeConnection) -> Mapper:
    """Mapper past the readiness handshake, with the handshake's queries cleared."""
    await mapper.connect(TEST_SETTINGS)
    connection.queries.clear()
    yield mapper
    await mapper.disconnect()


@pytest.fixture
def settings_values() -> Dict[str, Any]:
    return dict(TEST_SETTINGS)


@pytest.fixture
def connection_factory(backend: InMemoryGremlinBackend) -> RecordingConnectionFactory:
    return RecordingConnectionFactory(backend)
