# src/gremlinalchemy/orm/model.py
"""
GremlinAlchemy Model - shared runtime behind every compiled model class.

Models are stored as one vertex each. That vertex is bound to its model by
the reserved `$type` property, set to the model name given at compile time
(see `ModelCompiler.compile()`).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from gremlinalchemy.core.elements import ElementId, Edge, Vertex
from gremlinalchemy.core.gremlin import (
    GremlinQuery,
    add_edge_query,
    add_vertex_query,
    update_vertex_query,
    vertex_by_id_query,
    vertices_by_key_value_query,
)
from gremlinalchemy.exceptions import BackendError, CompilationError, NotFoundError, ValidationError
from gremlinalchemy.orm.schema import DISCRIMINATOR, IDENTIFIER, Schema

if TYPE_CHECKING:
    from gremlinalchemy.core.scripts import BoundScriptBundle
    from gremlinalchemy.mapper import Mapper

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound="Model")


def _is_element(element: Any) -> bool:
    if isinstance(element, Mapping):
        return IDENTIFIER in element
    return element is not None and hasattr(element, "id") and hasattr(element, "label")


class Model(BaseModel):
    """
    Base runtime shared by all compiled model classes.

    An instance without an identifier is new: `save()` inserts it. Once the
    backend assigned an identifier, `save()` updates the existing vertex.
    Ad hoc attributes may be set on any instance; only schema-declared
    properties are ever written to the backend.

    Example:
        ```python
        User = mapper.model("User", Schema({"name": str}))

        user = User(name="Batman")
        await user.save()          # insert, user.id now set
        user.name = "Bruce"
        await user.save()          # update
        ```
    """

    id: Optional[ElementId] = Field(
        default=None,
        alias=IDENTIFIER,
        description="Backend-assigned vertex identifier",
    )

    model_config = ConfigDict(
        validate_assignment=True,
        extra="allow",
        populate_by_name=True,
        arbitrary_types_allowed=True,
        protected_namespaces=(),
    )

    # Set by ModelCompiler on every compiled class
    __model_name__: ClassVar[str] = ""
    __schema__: ClassVar[Optional[Schema]] = None
    __mapper__: ClassVar[Optional["Mapper"]] = None
    __finders__: ClassVar[Dict[str, Callable]] = {}
    scripts: ClassVar[Optional["BoundScriptBundle"]] = None

    _discriminator: Optional[str] = PrivateAttr(default=None)

    def __init__(self, values: Optional[Mapping[str, Any]] = None, /, **data: Any) -> None:
        data = {**(values or {}), **data}
        discriminator = data.pop(DISCRIMINATOR, None)
        if discriminator is not None and discriminator != self.__model_name__:
            raise ValidationError(
                f"'{DISCRIMINATOR}' of a {type(self).__name__} must be '{self.__model_name__}', got '{discriminator}'"
            )
        super().__init__(**data)
        if discriminator is not None:
            self._discriminator = discriminator

    def __setattr__(self, name: str, value: Any) -> None:
        if name == DISCRIMINATOR:
            raise ValidationError(f"'{DISCRIMINATOR}' is managed by the mapper and cannot be altered")
        super().__setattr__(name, value)

    # =============================================================================
    # STATE
    # =============================================================================

    @property
    def discriminator(self) -> Optional[str]:
        """Model name stamped on this instance once it was persisted."""
        return self._discriminator

    @property
    def is_new(self) -> bool:
        return self.id is None

    def to_object(self) -> Dict[str, Any]:
        """
        Shallow snapshot of the instance's own fields, ad hoc ones included.

        The identifier is only present once assigned.
        """
        data: Dict[str, Any] = {}
        if self._discriminator is not None:
            data[DISCRIMINATOR] = self._discriminator
        if self.id is not None:
            data[IDENTIFIER] = self.id
        for name in type(self).model_fields:
            if name != "id":
                data[name] = getattr(self, name)
        data.update(self.__pydantic_extra__ or {})
        return data

    def sync(self: ModelType, results: Sequence[Any]) -> ModelType:
        """
        Merge the backend representation of this vertex into the instance.

        The backend's identifier is adopted; `$type` is never taken from it.
        """
        if not results or results[0] is None:
            raise BackendError(f"Backend returned no vertex for {type(self).__name__}")
        self._merge(Vertex.from_backend(results[0]))
        return self

    def _merge(self, vertex: Vertex) -> None:
        cls = type(self)
        self.id = vertex.id
        for key, value in vertex.properties.items():
            if key == DISCRIMINATOR or key.startswith("_"):
                continue
            if key not in cls.model_fields and hasattr(cls, key):
                continue
            setattr(self, key, value)

    def _declared_values(self) -> Dict[str, Any]:
        """Backend values of schema-declared properties, discriminator excluded."""
        doc = self.to_object()
        return {
            name: prop.to_backend(doc.get(name))
            for name, prop in self._require_schema().declared_properties.items()
        }

    # =============================================================================
    # PERSISTENCE
    # =============================================================================

    async def save(self: ModelType) -> ModelType:
        """
        Insert the instance if it is new, update it otherwise.

        Returns:
            Self for method chaining
        """
        if self.id is not None:
            return await self.update()
        return await self.insert()

    async def insert(self: ModelType) -> ModelType:
        """
        Create a vertex holding every schema-declared property.

        Indexed properties are attached through the backend's multi-valued
        pathway, plain ones are overwritten. On failure nothing is merged.
        """
        cls = type(self)
        mapper = cls._require_mapper()
        client = mapper.require_client()

        doc = self.to_object()
        doc[DISCRIMINATOR] = cls.__model_name__

        writes = []
        for name, prop in cls._require_schema().properties.items():
            value = prop.to_backend(doc.get(name))
            if value is None:
                continue
            step = client.indexed_property_step if prop.is_indexable() else "setProperty"
            writes.append((name, value, step))

        results = await mapper.execute(add_vertex_query(writes, commit=client.transactional))
        self.sync(results)
        self._discriminator = cls.__model_name__
        logger.debug("Inserted %s vertex %r", cls.__model_name__, self.id)
        return self

    async def update(self: ModelType) -> ModelType:
        """
        Send the current schema-declared values of an existing vertex.

        Uses the model's `update` script procedure when one is bundled.

        Raises:
            ValidationError: If the instance has no identifier.
            NotFoundError: If the backend has no vertex with this identifier.
        """
        if self.id is None:
            raise ValidationError(f"Cannot update an unsaved {type(self).__name__}")

        cls = type(self)
        properties = self._declared_values()

        if cls.scripts is not None and "update" in cls.scripts:
            results = await cls.scripts.call("update", self.id, properties).execute()
        else:
            mapper = cls._require_mapper()
            client = mapper.require_client()
            results = await mapper.execute(update_vertex_query(self.id, properties, commit=client.transactional))

        if not results or results[0] is None:
            raise NotFoundError(f"No {cls.__model_name__} vertex with id {self.id!r}")

        if _is_element(results[0]):
            self.sync(results)
        logger.debug("Updated %s vertex %r", cls.__model_name__, self.id)
        return self

    # =============================================================================
    # EDGES
    # =============================================================================

    @staticmethod
    def _endpoint_id(endpoint: Union["Model", ElementId, None], role: str) -> ElementId:
        if isinstance(endpoint, Model):
            if endpoint.id is None:
                raise ValidationError(f"Edge {role} {type(endpoint).__name__} has not been saved")
            return endpoint.id
        if endpoint is None:
            raise ValidationError(f"Edge {role} is missing")
        return endpoint

    async def add_edge(
        self,
        out_vertex: Union["Model", ElementId],
        in_vertex: Union["Model", ElementId],
        label: str,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> Edge:
        """
        Create a labeled edge between two persisted vertices.

        Args:
            out_vertex: Source model instance or raw vertex identifier
            in_vertex: Target model instance or raw vertex identifier
            label: Edge label
            properties: Edge property bag

        Raises:
            ValidationError: If an endpoint has not been saved, before any query is issued.
        """
        out_id = self._endpoint_id(out_vertex, "source")
        in_id = self._endpoint_id(in_vertex, "target")
        if not label or not label.strip():
            raise ValidationError("Edge label cannot be empty")

        mapper = type(self)._require_mapper()
        client = mapper.require_client()
        results = await mapper.execute(
            add_edge_query(out_id, in_id, label, properties or {}, commit=client.transactional)
        )
        if not results or results[0] is None:
            raise BackendError(f"Backend returned no edge for {out_id!r} -[{label}]-> {in_id!r}")
        return Edge.from_backend(results[0])

    async def add_outgoing_edge(
        self,
        target: Union["Model", ElementId],
        label: str,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> Edge:
        """Create an edge from this instance to `target`."""
        if self.id is None:
            raise ValidationError(f"Cannot create an edge from an unsaved {type(self).__name__}")
        return await self.add_edge(self, target, label, properties)

    async def add_incoming_edge(
        self,
        source: Union["Model", ElementId],
        label: str,
        properties: Optional[Mapping[str, Any]] = None,
    ) -> Edge:
        """Create an edge from `source` to this instance."""
        if self.id is None:
            raise ValidationError(f"Cannot create an edge to an unsaved {type(self).__name__}")
        return await self.add_edge(source, self, label, properties)

    # =============================================================================
    # CLASS METHODS
    # =============================================================================

    @classmethod
    def _require_mapper(cls) -> "Mapper":
        if cls.__mapper__ is None:
            raise CompilationError(f"{cls.__name__} is not a compiled model; use Mapper.model()")
        return cls.__mapper__

    @classmethod
    def _require_schema(cls) -> Schema:
        if cls.__schema__ is None:
            raise CompilationError(f"{cls.__name__} is not a compiled model; use Mapper.model()")
        return cls.__schema__

    @classmethod
    def reserved_names(cls) -> FrozenSet[str]:
        """Names a schema property may not take on a compiled model."""
        return frozenset(dir(Model)) | frozenset(Model.model_fields)

    @classmethod
    def from_backend(cls: Type[ModelType], element: Any) -> ModelType:
        """Wrap a raw backend vertex as an instance of this model."""
        vertex = element if isinstance(element, Vertex) else Vertex.from_backend(element)
        instance = cls()
        instance._merge(vertex)
        instance._discriminator = cls.__model_name__
        return instance

    @classmethod
    async def find(
        cls: Type[ModelType],
        query: Union[GremlinQuery, str],
        as_models: bool = True,
        **bindings: Any,
    ) -> List[Any]:
        """
        Execute a Gremlin query.

        Args:
            query: Gremlin script or query descriptor
            as_models: Wrap each result as a model instance (True) or return raw elements (False)
            **bindings: Extra script bindings

        Returns:
            Model instances or raw backend elements
        """
        results = await cls._require_mapper().execute(GremlinQuery.coerce(query, bindings))
        if not as_models:
            return results
        return [cls.from_backend(element) for element in results if element is not None]

    @classmethod
    async def find_by_id(cls: Type[ModelType], vertex_id: ElementId) -> Optional[ModelType]:
        """Vertex with the given identifier, or None."""
        if cls.scripts is not None and "findById" in cls.scripts:
            results = await cls.scripts.call("findById", vertex_id).execute()
        else:
            results = await cls._require_mapper().execute(vertex_by_id_query(vertex_id))

        elements = [element for element in results if element is not None]
        return cls.from_backend(elements[0]) if elements else None

    @classmethod
    async def find_by_key_value(cls: Type[ModelType], key: str, value: Any) -> List[ModelType]:
        """Vertices of this model whose property `key` equals `value`."""
        prop = cls._require_schema().get_property(key)
        if prop is not None:
            value = prop.to_backend(value)
        query = vertices_by_key_value_query(key, value, DISCRIMINATOR, cls.__model_name__)
        return await cls.find(query)

    def __repr__(self) -> str:
        status = "persisted" if self.id is not None else "new"
        return f"{self.__class__.__name__}(id={self.id!r} ({status}))"
