# src/gremlinalchemy/core/__init__.py
"""
GremlinAlchemy Core Module

Graph elements, Gremlin query descriptors, script bundles and the
query-execution bridge the ORM layer is built on.
"""

from gremlinalchemy.core.elements import Edge, Vertex
from gremlinalchemy.core.gremlin import GremlinQuery
from gremlinalchemy.core.scripts import BoundScriptBundle, Procedure, ScriptBundle

__all__ = [
    "Edge",
    "Vertex",
    "GremlinQuery",
    "BoundScriptBundle",
    "Procedure",
    "ScriptBundle",
]
