# src/gremlinalchemy/orm/compiler.py
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Type

from pydantic import Field

from gremlinalchemy.core.scripts import ScriptBundle
from gremlinalchemy.exceptions import CompilationError, SchemaError
from gremlinalchemy.orm.model import Model
from gremlinalchemy.orm.schema import Schema

if TYPE_CHECKING:
    from gremlinalchemy.mapper import Mapper

logger = logging.getLogger(__name__)

DEFAULT_FINDERS = ("find_by_id", "find_by_key_value")


def camel_case(name: str) -> str:
    """`first_name` -> `FirstName`."""
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[\W_]+", name) if part)


def finder_name(property_name: str) -> str:
    return f"find_by_{property_name}"


def _make_finder(model_name: str, property_name: str) -> Callable:
    async def finder(cls, value: Any):
        return await cls.find_by_key_value(property_name, value)

    finder.__name__ = finder_name(property_name)
    finder.__qualname__ = f"{camel_case(model_name)}.{finder.__name__}"
    finder.__doc__ = f"{camel_case(model_name)} vertices whose '{property_name}' equals `value`."
    return finder


class ModelCompiler:
    """
    Turns a validated Schema into a Model subclass.

    The generated class carries one Optional pydantic field per declared
    property, one `find_by_<property>` classmethod per property next to the
    default `find_by_id`/`find_by_key_value` finders, and the model's script
    bundle bound as `scripts`.
    """

    def __init__(self, mapper: "Mapper"):
        self.mapper = mapper

    def compile(
        self,
        model_name: str,
        schema: Schema,
        scripts: Optional[Any] = None,
    ) -> Type[Model]:
        """
        Build the model class for `schema`.

        Args:
            model_name: Model name; lower-cased, it is the `$type` of every vertex
            schema: Validated schema
            scripts: ScriptBundle, Groovy source text or None

        Returns:
            The compiled Model subclass

        Raises:
            CompilationError: On an empty name or a property colliding with the model surface.
        """
        if not isinstance(model_name, str) or not model_name.strip():
            raise CompilationError("Model name cannot be empty")
        if not isinstance(schema, Schema):
            raise SchemaError(f"Expected a Schema instance, got {type(schema).__name__}")

        model_name = model_name.strip().lower()
        class_name = camel_case(model_name) or "Model"
        reserved = Model.reserved_names()

        annotations: Dict[str, Any] = {}
        namespace: Dict[str, Any] = {}
        finders: Dict[str, Any] = {}

        for property_name, prop in schema.declared_properties.items():
            if property_name in reserved:
                raise CompilationError(
                    f"Property '{property_name}' of model '{model_name}' collides with a Model attribute"
                )
            name = finder_name(property_name)
            if name in DEFAULT_FINDERS or name in reserved:
                raise CompilationError(
                    f"Finder '{name}' generated for model '{model_name}' collides with a Model attribute"
                )

            annotations[property_name] = Optional[prop.python_type]
            namespace[property_name] = Field(default=None, description=f"{prop.type.value} property")
            finders[name] = classmethod(_make_finder(model_name, property_name))

        bundle = ScriptBundle.from_value(scripts)
        finder_table: Dict[str, Callable] = {}

        namespace.update(finders)
        namespace.update(
            {
                "__annotations__": annotations,
                "__module__": __name__,
                "__qualname__": class_name,
                "__doc__": f"Compiled model '{model_name}'.",
                "__model_name__": model_name,
                "__schema__": schema,
                "__mapper__": self.mapper,
                "__finders__": finder_table,
                "scripts": None,
            }
        )

        model = type(Model)(class_name, (Model,), namespace)

        for name in (*DEFAULT_FINDERS, *finders):
            finder_table[name] = getattr(model, name)
        if bundle is not None:
            model.scripts = bundle.bind(model)

        logger.debug(
            "Compiled model '%s' with properties %s%s",
            model_name,
            list(schema.declared_properties),
            f" and scripts {bundle.names}" if bundle else "",
        )
        return model
