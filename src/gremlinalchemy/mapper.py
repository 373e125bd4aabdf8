# src/gremlinalchemy/mapper.py
"""
The mapper context: registry of schemas and models, connection lifecycle and
the readiness handshake.

connect -> open connection -> build backend client -> create indexes -> ready

No model should be persisted before "ready": Titan refuses writes on keys that
were not defined first.
"""
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List, Mapping, Optional, Type, Union

from gremlinalchemy.clients import GraphClient, IndexReport, create_client
from gremlinalchemy.core.connection import Connection, open_connection
from gremlinalchemy.core.gremlin import GremlinQuery
from gremlinalchemy.exceptions import BackendError, GremlinAlchemyError
from gremlinalchemy.orm.compiler import ModelCompiler
from gremlinalchemy.orm.model import Model
from gremlinalchemy.orm.properties import Property
from gremlinalchemy.orm.schema import Schema
from gremlinalchemy.settings import ConnectionSettings

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[ConnectionSettings], Connection]
Listener = Callable[..., Any]

READY = "ready"


class Mapper:
    """
    Explicitly constructed object-to-graph mapper context.

    Holds the registered schemas and compiled models (keyed by lower-cased
    name), the open connection and the backend client. Application code
    creates one and passes it wherever models are defined.

    Example:
        ```python
        mapper = Mapper()
        User = mapper.model("User", Schema({"name": {"type": str, "indexed": True}}))

        await mapper.connect({"host": "localhost", "port": 8182, "client": "titan"})
        await User(name="Batman").save()
        ```
    """

    def __init__(self, connection_factory: Optional[ConnectionFactory] = None):
        self.schemas: Dict[str, Schema] = {}
        self.models: Dict[str, Type[Model]] = {}
        self.model_compiler = ModelCompiler(self)
        self.connection_factory: ConnectionFactory = connection_factory or open_connection

        self.settings: Optional[ConnectionSettings] = None
        self.connection: Optional[Connection] = None
        self.client: Optional[GraphClient] = None
        self.index_report: Optional[IndexReport] = None

        self._is_ready: bool = False
        self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

    # =============================================================================
    # REGISTRY
    # =============================================================================

    def has_schema(self, schema_name: str) -> bool:
        return schema_name.lower() in self.schemas

    def register_schema(self, schema_name: str, schema: Schema) -> None:
        self.schemas[schema_name.lower()] = schema

    def get_schema(self, schema_name: str) -> Optional[Schema]:
        return self.schemas.get(schema_name.lower())

    def add_model(self, model_name: str, model: Type[Model]) -> None:
        self.models[model_name.lower()] = model

    def get_model(self, model_name: str) -> Optional[Type[Model]]:
        return self.models.get(model_name.lower())

    def has_model(self, model_name: str) -> bool:
        return model_name.lower() in self.models

    def unregister(self, model_name: str) -> None:
        """Forget a schema and its compiled model."""
        model_name = model_name.lower()
        self.schemas.pop(model_name, None)
        self.models.pop(model_name, None)

    def model(self, model_name: str, schema: Optional[Schema] = None, scripts: Optional[Any] = None) -> Type[Model]:
        """
        Define a model, or retrieve it by name.

        A name that is already registered returns the existing class; the
        schema passed along is ignored rather than recompiled.

        Args:
            model_name: Case-insensitive model name
            schema: Schema for a new model
            scripts: Optional ScriptBundle or Groovy source of server-side procedures

        Returns:
            The compiled Model subclass
        """
        key = model_name.strip().lower() if isinstance(model_name, str) else model_name

        if isinstance(key, str) and self.has_model(key):
            return self.get_model(key)

        if schema is None:
            raise GremlinAlchemyError(f"Model '{model_name}' is not registered and no schema was given")

        model = self.model_compiler.compile(key, schema, scripts)
        self.register_schema(key, schema)
        self.add_model(key, model)
        return model

    def get_properties_to_index(self) -> List[Property]:
        """
        Indexable properties of all registered models, de-duplicated by name.

        The first declaration of a name wins.
        """
        properties: Dict[str, Property] = {}
        for model_name, model in self.models.items():
            for prop in model.__schema__.indexable_properties():
                known = properties.get(prop.name)
                if known is None:
                    properties[prop.name] = prop
                elif known != prop:
                    logger.warning(
                        "Property '%s' of model '%s' is declared differently elsewhere; keeping %r",
                        prop.name,
                        model_name,
                        known,
                    )

        logger.info(
            "Properties flagged for indexing: %s (count: %d)",
            ", ".join(properties),
            len(properties),
        )
        return list(properties.values())

    # =============================================================================
    # EVENTS
    # =============================================================================

    def on(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        if listener in self._listeners.get(event, []):
            self._listeners[event].remove(listener)

    async def emit(self, event: str, *args: Any) -> None:
        """Call every listener of `event`; coroutine listeners are awaited."""
        for listener in list(self._listeners.get(event, [])):
            result = listener(*args)
            if inspect.isawaitable(result):
                await result

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    # =============================================================================
    # CONNECTION LIFECYCLE
    # =============================================================================

    def build_client(self) -> GraphClient:
        """Instantiate the backend client named in the settings."""
        self.client = create_client(self.settings.client, self)
        return self.client

    def require_client(self) -> GraphClient:
        if self.client is None or self.connection is None:
            raise BackendError("Mapper is not connected. Call `await mapper.connect(settings)` first.")
        return self.client

    async def execute(self, query: Union[GremlinQuery, str], **bindings: Any) -> List[Any]:
        """Run a query through the open connection."""
        if self.connection is None:
            raise BackendError("Mapper is not connected. Call `await mapper.connect(settings)` first.")
        return await self.connection.execute_query(GremlinQuery.coerce(query, bindings))

    async def connect(self, settings: Union[ConnectionSettings, Mapping[str, Any]]) -> Connection:
        """
        Open the connection, prepare the backend and signal readiness.

        Each stage completes before the next starts: the connection opens,
        the backend client is built, its index keys are created, then the
        "ready" event is emitted.

        Args:
            settings: ConnectionSettings or a plain mapping

        A connection left open by an earlier call is closed first.

        Returns:
            The open connection

        Raises:
            ConfigurationError: If the settings are invalid.
            BackendError: If the connection cannot be opened, or index creation
                failed under the "fail" index policy (the connection stays open).
        """
        self.settings = ConnectionSettings.from_value(settings)
        if self.connection is not None:
            await self.disconnect()
        self._is_ready = False

        connection = self.connection_factory(self.settings)
        await connection.open()
        self.connection = connection

        client = self.build_client()
        try:
            self.index_report = await client.initialize()
        except BackendError as e:
            self.index_report = client.last_report
            if self.settings.index_failure_policy == "fail":
                raise
            logger.warning("Continuing in degraded mode after index creation failure: %s", e)

        self._is_ready = True
        logger.info("Mapper ready on %s (client '%s')", self.settings.url, client.name)
        await self.emit(READY, connection)
        return connection

    async def disconnect(self) -> None:
        """Close the connection with the database."""
        connection, self.connection = self.connection, None
        self.client = None
        self._is_ready = False
        if connection is not None:
            await connection.close()
            logger.info("Mapper disconnected")

    async def __aenter__(self) -> "Mapper":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()


def create_mapper(connection_factory: Optional[ConnectionFactory] = None) -> Mapper:
    """
    Create a Mapper.

    Args:
        connection_factory: Builds a Connection from settings; defaults to Rexster over HTTP.

    Returns:
        A Mapper with no registered models
    """
    return Mapper(connection_factory=connection_factory)
