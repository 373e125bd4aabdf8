# src/gremlinalchemy/orm/__init__.py
"""
GremlinAlchemy ORM Module

Schemas, the model compiler and the model runtime shared by compiled models.
"""

from gremlinalchemy.orm.properties import Property, PropertyType
from gremlinalchemy.orm.schema import DISCRIMINATOR, Schema
from gremlinalchemy.orm.model import Model
from gremlinalchemy.orm.compiler import ModelCompiler

__all__ = [
    # Schema system
    "Property",
    "PropertyType",
    "DISCRIMINATOR",
    "Schema",

    # Models
    "Model",
    "ModelCompiler",
]
