# src/gremlinalchemy/__init__.py
r"""
GremlinAlchemy - Object-to-graph mapper for Gremlin-speaking graph databases

GremlinAlchemy maps application models onto vertices of Titan and Rexster
graphs with:
- Declarative schemas compiled into Pydantic-validated model classes
- Generated `find_by_<property>` finders
- Automatic index key creation before the mapper signals readiness
- Async CRUD and edge creation
- Server-side Groovy script bundles per model

Example:
    ```python
    from gremlinalchemy import Mapper, Schema

    mapper = Mapper()

    User = mapper.model("User", Schema({
        "name": {"type": str, "indexed": True},
        "email": {"type": str, "unique": True},
        "age": int,
    }))

    await mapper.connect({"host": "localhost", "port": 8182, "client": "titan"})

    batman = await User(name="Batman", email="bruce@wayne.com").save()
    robin = await User(name="Robin", email="dick@wayne.com").save()
    await batman.add_outgoing_edge(robin, "mentors", {"since": 1940})

    heroes = await User.find_by_name("Batman")
    ```
"""

# Core graph functionality
from gremlinalchemy.core.connection import Connection, RexsterConnection, open_connection
from gremlinalchemy.core.elements import Edge, Vertex
from gremlinalchemy.core.gremlin import GremlinQuery
from gremlinalchemy.core.scripts import Procedure, ScriptBundle

# ORM system
from gremlinalchemy.orm.properties import Property, PropertyType
from gremlinalchemy.orm.schema import DISCRIMINATOR, Schema
from gremlinalchemy.orm.model import Model
from gremlinalchemy.orm.compiler import ModelCompiler

# Backend clients
from gremlinalchemy.clients import GraphClient, IndexReport, IndexState, RexsterClient, TitanClient

# Mapper and configuration
from gremlinalchemy.mapper import Mapper, create_mapper
from gremlinalchemy.settings import ConnectionSettings

from gremlinalchemy.exceptions import (
    BackendError,
    CompilationError,
    ConfigurationError,
    GremlinAlchemyError,
    NotFoundError,
    SchemaError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "Connection",
    "RexsterConnection",
    "open_connection",
    "Edge",
    "Vertex",
    "GremlinQuery",
    "Procedure",
    "ScriptBundle",

    # ORM
    "Property",
    "PropertyType",
    "DISCRIMINATOR",
    "Schema",
    "Model",
    "ModelCompiler",

    # Clients
    "GraphClient",
    "IndexReport",
    "IndexState",
    "RexsterClient",
    "TitanClient",

    # Mapper
    "Mapper",
    "create_mapper",
    "ConnectionSettings",

    # Errors
    "GremlinAlchemyError",
    "SchemaError",
    "CompilationError",
    "ValidationError",
    "ConfigurationError",
    "BackendError",
    "NotFoundError",

    # Version
    "__version__",
]
