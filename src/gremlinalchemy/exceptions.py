# src/gremlinalchemy/exceptions.py
"""
GremlinAlchemy error taxonomy.

Local errors (schema misuse, name collisions, missing identifiers) are raised
before any query is issued. Backend errors are raised by the connection layer
and travel through the ORM and client layers untouched.
"""


class GremlinAlchemyError(Exception):
    """Base class for every error raised by GremlinAlchemy."""


class SchemaError(GremlinAlchemyError):
    """Malformed schema definition."""


class CompilationError(GremlinAlchemyError):
    """A schema property name collides with the generated model surface."""


class ValidationError(GremlinAlchemyError):
    """An operation was attempted on an instance missing a precondition."""


class ConfigurationError(GremlinAlchemyError):
    """Invalid connection settings or unknown backend client."""


class BackendError(GremlinAlchemyError):
    """Failure surfaced by the query-execution bridge."""


class NotFoundError(BackendError):
    """The targeted vertex does not exist in the backend."""
